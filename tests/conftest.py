import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pickleball.api.dependencies import get_db, get_publisher
from pickleball.core.database import Base
from pickleball.main import app
from pickleball.models import create_tables
from pickleball.models.enums import TournamentFormat, TournamentType
from pickleball.schemas.participant_schemas import ParticipantCreate
from pickleball.schemas.tournament_schemas import Rules, TournamentCreate
from pickleball.services import tournament_service
from pickleball.services.event_service import EventPublisher
from pickleball.services.match_progression import MatchProgressionEngine


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    create_tables(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def publisher():
    return MagicMock(spec=EventPublisher)


@pytest.fixture
def engine(db, publisher):
    return MatchProgressionEngine(db, publisher)


@pytest.fixture
def make_tournament(db):
    """Creates a tournament with ``participants`` entrants seeded 1..n (named P1..Pn)."""

    def _make(format: TournamentFormat, participants: int = 4, type: TournamentType = TournamentType.SINGLES,
              points_to_win: int = 11):
        tournament = tournament_service.create_tournament(db, TournamentCreate(
            name="Club Open",
            type=type,
            format=format,
            rules=Rules(points_to_win=points_to_win),
        ))
        for i in range(1, participants + 1):
            players = [f"Player {i}"] if type is TournamentType.SINGLES else [f"Player {i}a", f"Player {i}b"]
            tournament_service.add_participant(db, tournament.id, ParticipantCreate(
                name=f"P{i}", players=players, seed=i,
            ))
        return tournament

    return _make


@pytest.fixture
def participant_ids(db):
    """Participant ids of a tournament, in seed order."""

    def _ids(tournament_id: int):
        return [p.id for p in tournament_service.list_participants(db, tournament_id)]

    return _ids


@pytest.fixture
def client(db, publisher):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_publisher] = lambda: publisher
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_tournament(client):
    def _create(format="knockout", participants=4, type="singles"):
        response = client.post("/tournaments/", json={"name": "Friday Ladder", "type": type, "format": format})
        assert response.status_code == 201
        tournament = response.json()
        for i in range(1, participants + 1):
            players = [f"Player {i}"] if type == "singles" else [f"Player {i}a", f"Player {i}b"]
            added = client.post(f"/tournaments/{tournament['id']}/participants",
                                json={"name": f"P{i}", "players": players, "seed": i})
            assert added.status_code == 201
        return tournament

    return _create
