import logging
import math
import random
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from pickleball.core.config import settings
from pickleball.core.database import atomic
from pickleball.core.exceptions import NotFoundError, StateError, ValidationError
from pickleball.core.locks import tournament_lock
from pickleball.models import match as match_model
from pickleball.models import participant as participant_model
from pickleball.models import tournament as tournament_model
from pickleball.models.enums import KnockoutStructure, MatchStatus, TournamentFormat, TournamentType
from pickleball.models.round_kind import RoundKind
from pickleball.schemas import participant_schemas, tournament_schemas
from pickleball.schemas.fixture_schemas import FixtureMatch, FixtureOptions, FixtureResult
from pickleball.schemas.match_schemas import MatchRead
from pickleball.schemas.participant_schemas import ParticipantRead
from pickleball.schemas.round_schemas import RoundSummary
from pickleball.schemas.standings_schemas import GroupStandings, Standing
from pickleball.services import fixture_generator
from pickleball.services.group_standings import calculate_group_standings
from pickleball.services.rounds import summarize_rounds
from pickleball.services.standings_calculator import calculate_standings

log = logging.getLogger(__name__)

GROUP_STAGE_LABEL = "Group Stage"
DEFAULT_GROUP_SIZE = 4


# --- Tournaments ---

def create_tournament(db: Session, tournament: tournament_schemas.TournamentCreate) -> tournament_model.Tournament:
    db_tournament = tournament_model.Tournament(
        name=tournament.name,
        type=tournament.type.value,
        format=tournament.format.value,
        points_to_win=tournament.rules.points_to_win,
        scoring_system=tournament.rules.scoring_system.value,
        is_public=tournament.is_public,
    )
    db.add(db_tournament)
    db.commit()
    db.refresh(db_tournament)
    log.info("Created %s %s tournament %s", db_tournament.format, db_tournament.type, db_tournament.id)
    return db_tournament


def get_tournament(db: Session, tournament_id: int) -> tournament_model.Tournament:
    tournament = db.query(tournament_model.Tournament).filter(tournament_model.Tournament.id == tournament_id).first()
    if not tournament:
        raise NotFoundError(f"Tournament {tournament_id} not found")
    return tournament


def list_public_tournaments(db: Session) -> List[tournament_model.Tournament]:
    return (db.query(tournament_model.Tournament)
            .filter(tournament_model.Tournament.is_public.is_(True))
            .order_by(tournament_model.Tournament.created_at, tournament_model.Tournament.id)
            .all())


# --- Participants ---

def add_participant(db: Session, tournament_id: int,
                    participant: participant_schemas.ParticipantCreate) -> participant_model.Participant:
    tournament = get_tournament(db, tournament_id)
    expected_players = TournamentType(tournament.type).players_per_side
    if len(participant.players) != expected_players:
        raise ValidationError(
            f"A {tournament.type} participant needs {expected_players} player name(s), got {len(participant.players)}.",
            {"expected_players": expected_players},
        )

    db_participant = participant_model.Participant(tournament_id=tournament_id, **participant.model_dump())
    db.add(db_participant)
    db.commit()
    db.refresh(db_participant)
    return db_participant


def list_participants(db: Session, tournament_id: int) -> List[participant_model.Participant]:
    """Participants in draw order: seeded first by seed, then the rest by name."""
    get_tournament(db, tournament_id)
    participants = db.query(participant_model.Participant).filter(
        participant_model.Participant.tournament_id == tournament_id
    ).all()
    return sorted(participants, key=lambda p: (p.seed is None, p.seed or 0, p.name.lower(), p.id))


def get_participant(db: Session, tournament_id: int, participant_id: int) -> participant_model.Participant:
    participant = db.query(participant_model.Participant).filter(
        participant_model.Participant.id == participant_id,
        participant_model.Participant.tournament_id == tournament_id,
    ).first()
    if not participant:
        raise NotFoundError(f"Participant {participant_id} not found in tournament {tournament_id}")
    return participant


def delete_participant(db: Session, tournament_id: int, participant_id: int):
    """Removes a participant; their open match slots fall back to TBD.

    Participants that already count towards a completed result cannot be
    removed.
    """
    with tournament_lock(tournament_id), atomic(db):
        participant = get_participant(db, tournament_id, participant_id)
        referencing = db.query(match_model.Match).filter(
            match_model.Match.tournament_id == tournament_id,
            or_(match_model.Match.participant_a_id == participant_id,
                match_model.Match.participant_b_id == participant_id),
        ).all()
        if any(m.status == MatchStatus.COMPLETED.value for m in referencing):
            raise StateError(f"Participant {participant.name} has completed matches and cannot be deleted")

        for match in referencing:
            if match.participant_a_id == participant_id:
                match.participant_a_id = None
            if match.participant_b_id == participant_id:
                match.participant_b_id = None
        db.delete(participant)


# --- Matches ---

def get_match(db: Session, match_id: int) -> match_model.Match:
    match = db.query(match_model.Match).filter(match_model.Match.id == match_id).first()
    if not match:
        raise NotFoundError(f"Match {match_id} not found")
    return match


def list_matches(db: Session, tournament_id: int, round_label: Optional[str] = None,
                 status: Optional[MatchStatus] = None) -> List[match_model.Match]:
    query = db.query(match_model.Match).filter(match_model.Match.tournament_id == tournament_id)
    if round_label is not None:
        query = query.filter(match_model.Match.round_label == round_label)
    if status is not None:
        query = query.filter(match_model.Match.status == MatchStatus(status).value)
    return query.order_by(match_model.Match.order, match_model.Match.id).all()


def next_order(db: Session, tournament_id: int) -> int:
    current = db.query(func.max(match_model.Match.order)).filter(
        match_model.Match.tournament_id == tournament_id
    ).scalar()
    return 0 if current is None else current + 1


def persist_fixtures(db: Session, tournament_id: int, fixtures: Sequence[FixtureMatch]) -> List[match_model.Match]:
    new_matches = []
    for fixture in fixtures:
        new_matches.append(match_model.Match(
            tournament_id=tournament_id,
            round_kind=fixture.round,
            participant_a_id=fixture.participant_a_id,
            participant_b_id=fixture.participant_b_id,
            status=MatchStatus.UPCOMING.value,
            score_a=0,
            score_b=0,
            order=fixture.order,
        ))
    db.add_all(new_matches)
    db.flush()
    return new_matches


def _count_by_round(matches: Sequence[match_model.Match]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for match in matches:
        counts[match.round_label] = counts.get(match.round_label, 0) + 1
    return counts


# --- Fixtures ---

def validate_knockout_handoff(distribution: Sequence[int], per_group: int,
                              structure: Optional[KnockoutStructure]) -> KnockoutStructure:
    """Checks up front that the group stage can feed a clean knockout bracket."""
    total = per_group * len(distribution)
    if min(distribution) < per_group:
        raise ValidationError(
            f"Smallest group has {min(distribution)} participants, cannot qualify {per_group} per group.",
            {"distribution": list(distribution), "qualifiers_per_group": per_group},
        )
    if structure is None:
        try:
            return KnockoutStructure.for_size(total)
        except ValueError:
            raise ValidationError(
                f"{per_group} qualifiers from {len(distribution)} groups gives {total}; "
                "the knockout stage needs 2, 4 or 8.",
                {"qualified": total, "allowed": [s.size for s in KnockoutStructure]},
            )
    if structure.size != total:
        raise ValidationError(
            f"For {structure.value}, total qualified players must be exactly {structure.size}, got {total}.",
            {"qualified": total, "expected": structure.size},
        )
    return structure


def generate_fixtures(db: Session, tournament_id: int, format: TournamentFormat,
                      options: Optional[FixtureOptions] = None) -> FixtureResult:
    options = options or FixtureOptions()
    with tournament_lock(tournament_id), atomic(db):
        tournament = get_tournament(db, tournament_id)
        format = TournamentFormat(format)
        if format.value != tournament.format:
            raise ValidationError(
                f"Tournament {tournament_id} is {tournament.format}, cannot generate {format.value} fixtures.")
        if next_order(db, tournament_id) > 0:
            raise StateError("Tournament already has matches. Delete existing matches first.")

        participant_ids = [p.id for p in list_participants(db, tournament_id)]
        if options.shuffle:
            participant_ids = random.sample(participant_ids, len(participant_ids))

        distribution = None
        current_round = None
        if format is TournamentFormat.ROUND_ROBIN:
            fixtures = fixture_generator.generate_round_robin(participant_ids)
        elif format is TournamentFormat.GROUP:
            num_groups = options.num_groups or max(1, math.ceil(len(participant_ids) / DEFAULT_GROUP_SIZE))
            max_per_group = options.max_per_group or max(len(participant_ids), options.min_per_group)
            fixtures = fixture_generator.generate_group_stage(
                participant_ids, num_groups, options.min_per_group, max_per_group)
            distribution = fixture_generator.calculate_group_distribution(len(participant_ids), num_groups)

            per_group = options.qualifiers_per_group or settings.DEFAULT_QUALIFIERS_PER_GROUP
            structure = validate_knockout_handoff(distribution, per_group, options.knockout_structure)
            tournament.qualifiers_per_group = per_group
            tournament.knockout_structure = structure.value
            tournament.cross_group_seeding = options.cross_group_seeding
            current_round = GROUP_STAGE_LABEL
        elif format is TournamentFormat.KNOCKOUT:
            fixtures = fixture_generator.generate_knockout(participant_ids, options.knockout_structure)
        else:
            fixtures = fixture_generator.generate_custom_round(
                options.round_name or "Round 1", options.participant_ids, participant_ids)

        matches = persist_fixtures(db, tournament_id, fixtures)
        tournament.current_round = current_round or fixtures[0].round.label
        result = FixtureResult(
            matches_created=len(matches),
            by_round=_count_by_round(matches),
            current_round=tournament.current_round,
            group_distribution=distribution,
        )

    log.info("Generated %d %s fixtures for tournament %s", result.matches_created, format.value, tournament_id)
    return result


def create_custom_round(db: Session, tournament_id: int, round_name: str,
                        participant_ids: Optional[List[int]] = None) -> List[match_model.Match]:
    with tournament_lock(tournament_id), atomic(db):
        tournament = get_tournament(db, tournament_id)
        if tournament.format != TournamentFormat.CUSTOM.value:
            raise ValidationError("Custom rounds can only be created for custom tournaments.")

        kind = RoundKind.custom(round_name) if round_name and round_name.strip() else None
        if kind is None:
            raise ValidationError("Round name is required.")
        if list_matches(db, tournament_id, round_label=kind.label):
            raise ValidationError(
                f'Round "{kind.label}" already exists. Please use a different round name or delete existing matches.')

        available = [p.id for p in list_participants(db, tournament_id)]
        fixtures = fixture_generator.generate_custom_round(
            kind.label, participant_ids, available, start_order=next_order(db, tournament_id))
        matches = persist_fixtures(db, tournament_id, fixtures)
        tournament.current_round = kind.label

    log.info("Created custom round %r with %d matches for tournament %s", kind.label, len(matches), tournament_id)
    return matches


# --- Derived views ---

def get_rounds(db: Session, tournament_id: int) -> List[RoundSummary]:
    tournament = get_tournament(db, tournament_id)
    matches = [MatchRead.model_validate(m) for m in list_matches(db, tournament_id)]
    return summarize_rounds(matches, tournament.locked_rounds)


def _standings_inputs(db: Session, tournament_id: int):
    participants = [ParticipantRead.model_validate(p) for p in list_participants(db, tournament_id)]
    matches = [MatchRead.model_validate(m) for m in list_matches(db, tournament_id)]
    return participants, matches


def get_standings(db: Session, tournament_id: int) -> List[Standing]:
    participants, matches = _standings_inputs(db, tournament_id)
    return calculate_standings(participants, matches)


def get_group_standings(db: Session, tournament_id: int) -> List[GroupStandings]:
    participants, matches = _standings_inputs(db, tournament_id)
    return calculate_group_standings(participants, matches)
