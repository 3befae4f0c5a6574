import pytest

from pickleball.core.exceptions import NotFoundError, StateError, ValidationError
from pickleball.models.enums import KnockoutStructure, MatchStatus, TournamentFormat, TournamentType
from pickleball.models.round_kind import RoundTag
from pickleball.schemas.fixture_schemas import FixtureOptions
from pickleball.schemas.participant_schemas import ParticipantCreate
from pickleball.services import tournament_service


class TestTournamentsAndParticipants:

    def test_create_uses_default_rules(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.ROUND_ROBIN, participants=0)
        assert tournament.points_to_win == 11
        assert tournament.status == "draft"
        assert tournament.current_round is None

    def test_unknown_tournament(self, db):
        with pytest.raises(NotFoundError):
            tournament_service.get_tournament(db, 42)

    def test_doubles_need_two_players(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=0, type=TournamentType.DOUBLES)
        with pytest.raises(ValidationError) as exc_info:
            tournament_service.add_participant(db, tournament.id, ParticipantCreate(name="Solo", players=["Ann"]))
        assert exc_info.value.details["expected_players"] == 2

        team = tournament_service.add_participant(
            db, tournament.id, ParticipantCreate(name="Team", players=["Ann", "Bo"]))
        assert team.players == ["Ann", "Bo"]

    def test_list_orders_seeded_first(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=0)
        for name, seed in (("Zed", None), ("Amy", None), ("Top", 1), ("Second", 2)):
            tournament_service.add_participant(db, tournament.id, ParticipantCreate(name=name, players=[name], seed=seed))

        names = [p.name for p in tournament_service.list_participants(db, tournament.id)]
        assert names == ["Top", "Second", "Amy", "Zed"]

    def test_delete_participant_frees_open_slots(self, db, make_tournament, participant_ids):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=4)
        tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.KNOCKOUT)
        ids = participant_ids(tournament.id)

        tournament_service.delete_participant(db, tournament.id, ids[0])

        first = tournament_service.list_matches(db, tournament.id)[0]
        assert (first.participant_a_id, first.participant_b_id) == (None, ids[1])
        assert participant_ids(tournament.id) == ids[1:]

    def test_delete_participant_with_result_rejected(self, db, engine, make_tournament, participant_ids):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=2)
        tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.KNOCKOUT)
        engine.complete_match(tournament_service.list_matches(db, tournament.id)[0].id, 11, 3)

        with pytest.raises(StateError):
            tournament_service.delete_participant(db, tournament.id, participant_ids(tournament.id)[0])


class TestGenerateFixtures:

    def test_round_robin(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.ROUND_ROBIN, participants=5)

        result = tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.ROUND_ROBIN)

        assert result.matches_created == 10
        assert result.by_round == {"Round Robin": 10}
        assert result.current_round == "Round Robin"
        matches = tournament_service.list_matches(db, tournament.id)
        assert all(m.status == MatchStatus.UPCOMING.value and m.round_tag == RoundTag.ROUND_ROBIN.value
                   for m in matches)

    def test_group_stage_records_handoff(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.GROUP, participants=10)

        result = tournament_service.generate_fixtures(
            db, tournament.id, TournamentFormat.GROUP,
            FixtureOptions(num_groups=2, qualifiers_per_group=1, knockout_structure=KnockoutStructure.DIRECT_FINAL))

        assert result.group_distribution == [5, 5]
        assert result.by_round == {"Group A": 10, "Group B": 10}
        assert result.current_round == "Group Stage"
        refreshed = tournament_service.get_tournament(db, tournament.id)
        assert refreshed.qualifiers_per_group == 1
        assert refreshed.knockout_structure == KnockoutStructure.DIRECT_FINAL.value

    def test_group_qualifiers_must_fill_a_bracket(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.GROUP, participants=9)

        with pytest.raises(ValidationError) as exc_info:
            tournament_service.generate_fixtures(
                db, tournament.id, TournamentFormat.GROUP, FixtureOptions(num_groups=3, qualifiers_per_group=2))

        assert exc_info.value.details["qualified"] == 6
        assert tournament_service.list_matches(db, tournament.id) == []

    def test_group_bounds_violation(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.GROUP, participants=10)
        with pytest.raises(ValidationError) as exc_info:
            tournament_service.generate_fixtures(
                db, tournament.id, TournamentFormat.GROUP,
                FixtureOptions(num_groups=3, min_per_group=4, max_per_group=5))
        assert exc_info.value.details["distribution"] == [4, 3, 3]

    def test_knockout_size_mismatch(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=6)
        with pytest.raises(ValidationError) as exc_info:
            tournament_service.generate_fixtures(
                db, tournament.id, TournamentFormat.KNOCKOUT,
                FixtureOptions(knockout_structure=KnockoutStructure.QUARTERFINAL))
        assert exc_info.value.details["missing"] == 2

    def test_format_must_match_tournament(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=4)
        with pytest.raises(ValidationError):
            tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.ROUND_ROBIN)

    def test_only_once(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=4)
        tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.KNOCKOUT)
        with pytest.raises(StateError):
            tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.KNOCKOUT)
        assert len(tournament_service.list_matches(db, tournament.id)) == 2


class TestCustomRounds:

    def test_rounds_are_appended_in_order(self, db, make_tournament, participant_ids):
        tournament = make_tournament(TournamentFormat.CUSTOM, participants=4)
        ids = participant_ids(tournament.id)
        tournament_service.create_custom_round(db, tournament.id, "Week 1", [ids[0], ids[1], ids[2], ids[3]])

        week_2 = tournament_service.create_custom_round(db, tournament.id, "Week 2", [ids[3], ids[0], ids[2]])

        assert [(m.participant_a_id, m.participant_b_id) for m in week_2] == [(ids[3], ids[0]), (ids[2], None)]
        assert [m.order for m in week_2] == [2, 3]
        assert tournament_service.get_tournament(db, tournament.id).current_round == "Week 2"

    def test_duplicate_round_name(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.CUSTOM, participants=2)
        tournament_service.create_custom_round(db, tournament.id, "Finals Night")
        with pytest.raises(ValidationError):
            tournament_service.create_custom_round(db, tournament.id, "Finals Night")

    def test_blank_round_name(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.CUSTOM, participants=2)
        with pytest.raises(ValidationError):
            tournament_service.create_custom_round(db, tournament.id, "  ")

    def test_only_for_custom_tournaments(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=2)
        with pytest.raises(ValidationError):
            tournament_service.create_custom_round(db, tournament.id, "Extra")


class TestDerivedViews:

    def test_rounds_summary(self, db, engine, make_tournament):
        tournament = make_tournament(TournamentFormat.KNOCKOUT, participants=4)
        tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.KNOCKOUT)
        first, second = tournament_service.list_matches(db, tournament.id)
        engine.complete_match(first.id, 11, 4)
        engine.cancel_match(second.id)

        rounds = tournament_service.get_rounds(db, tournament.id)

        assert [r.label for r in rounds] == ["Semifinal", "Final"]
        semifinal = rounds[0]
        assert (semifinal.stats.total, semifinal.stats.completed, semifinal.stats.cancelled) == (2, 1, 1)
        assert semifinal.is_complete and semifinal.is_locked
        assert not rounds[1].is_complete and not rounds[1].is_locked

    def test_standings(self, db, engine, make_tournament, participant_ids):
        tournament = make_tournament(TournamentFormat.ROUND_ROBIN, participants=3)
        tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.ROUND_ROBIN)
        ids = participant_ids(tournament.id)
        for match in tournament_service.list_matches(db, tournament.id):
            lower_wins = match.participant_a_id < match.participant_b_id
            engine.complete_match(match.id, *((11, 5) if lower_wins else (5, 11)))

        standings = tournament_service.get_standings(db, tournament.id)

        assert [s.participant.id for s in standings] == ids
        assert [s.stats.wins for s in standings] == [2, 1, 0]

    def test_group_standings(self, db, make_tournament):
        tournament = make_tournament(TournamentFormat.GROUP, participants=8)
        tournament_service.generate_fixtures(db, tournament.id, TournamentFormat.GROUP, FixtureOptions(num_groups=2))

        groups = tournament_service.get_group_standings(db, tournament.id)

        assert [g.group_name for g in groups] == ["Group A", "Group B"]
        assert [len(g.standings) for g in groups] == [4, 4]
