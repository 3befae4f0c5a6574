import threading
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pickleball.core import locks
from pickleball.core.locks import tournament_lock
from pickleball.models import create_tables
from pickleball.models.enums import TournamentFormat, TournamentType
from pickleball.schemas.participant_schemas import ParticipantCreate
from pickleball.schemas.tournament_schemas import TournamentCreate
from pickleball.services import tournament_service
from pickleball.services.event_service import EventPublisher
from pickleball.services.match_progression import MatchProgressionEngine


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a file database so each thread gets its own connection."""
    engine = create_engine(f"sqlite:///{tmp_path / 'concurrent.db'}", connect_args={"check_same_thread": False})
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


class TestTournamentLock:

    def test_lock_is_reentrant(self):
        with tournament_lock(7):
            with tournament_lock(7):
                assert locks._tournament_locks[7].users == 2
        assert 7 not in locks._tournament_locks

    def test_registry_entry_released_after_error(self):
        with pytest.raises(RuntimeError):
            with tournament_lock(8):
                raise RuntimeError("boom")
        assert 8 not in locks._tournament_locks

    def test_other_tournaments_are_not_blocked(self):
        entered = threading.Event()

        def other():
            with tournament_lock(2):
                entered.set()

        with tournament_lock(1):
            worker = threading.Thread(target=other)
            worker.start()
            assert entered.wait(timeout=5)
            worker.join()


class TestConcurrentCompletion:

    def test_simultaneous_semifinals_create_one_final(self, file_sessions):
        setup = file_sessions()
        tournament = tournament_service.create_tournament(setup, TournamentCreate(
            name="Club Night", type=TournamentType.SINGLES, format=TournamentFormat.KNOCKOUT,
        ))
        for i in range(1, 5):
            tournament_service.add_participant(setup, tournament.id, ParticipantCreate(
                name=f"P{i}", players=[f"Player {i}"], seed=i,
            ))
        tournament_service.generate_fixtures(setup, tournament.id, TournamentFormat.KNOCKOUT)
        tid = tournament.id
        semifinal_ids = [m.id for m in tournament_service.list_matches(setup, tid, round_label="Semifinal")]
        setup.close()

        barrier = threading.Barrier(2)
        errors = []

        def complete(match_id):
            session = file_sessions()
            try:
                barrier.wait(timeout=5)
                MatchProgressionEngine(session, MagicMock(spec=EventPublisher)).complete_match(match_id, 11, 7)
            except Exception as exc:
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=complete, args=(mid,)) for mid in semifinal_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        check = file_sessions()
        try:
            final = tournament_service.list_matches(check, tid, round_label="Final")
            assert len(final) == 1
            assert final[0].has_both_participants
            tournament = tournament_service.get_tournament(check, tid)
            assert tournament.is_round_locked("Semifinal")
            assert tournament.current_round == "Final"
        finally:
            check.close()
