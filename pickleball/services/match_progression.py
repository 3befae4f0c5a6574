"""
Match state machine and bracket progression.

    upcoming -> live -> completed
    upcoming | live -> cancelled -> upcoming   (reactivation, score 0-0)

Every completion or cancellation re-evaluates the match's round. A knockout
round that is fully complete advances its winners into the next knockout
round, a completed Final finishes the tournament, and a group stage whose
groups are all complete hands its qualifiers to the first knockout round.
A round that fed a later round is locked and can no longer be changed.
"""
import logging
from contextlib import contextmanager
from typing import List, Sequence, Tuple

from sqlalchemy.orm import Session

from pickleball.core.database import atomic
from pickleball.core.exceptions import StateError, ValidationError
from pickleball.core.locks import tournament_lock
from pickleball.models.enums import (
    EventType, KnockoutStructure, MatchStatus, TournamentFormat, TournamentStatus,
)
from pickleball.models.match import Match
from pickleball.models.round_kind import RoundKind, RoundTag
from pickleball.models.tournament import Tournament
from pickleball.schemas.match_schemas import CompletionResult, MatchRead, Progression, ScoreUpdateResult
from pickleball.schemas.participant_schemas import ParticipantRead
from pickleball.services import fixture_generator, tournament_service
from pickleball.services.event_service import EventPublisher, publisher
from pickleball.services.group_standings import (
    calculate_group_standings, concatenate_qualifiers, select_qualifiers,
)
from pickleball.services.rounds import is_round_complete, round_stats

log = logging.getLogger(__name__)

PendingEvents = List[Tuple[EventType, MatchRead]]

_NOT_STARTED = (
    TournamentStatus.DRAFT.value,
    TournamentStatus.COMING_SOON.value,
    TournamentStatus.DELAYED.value,
)


def _check_scores(score_a, score_b):
    for score in (score_a, score_b):
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValidationError("Scores must be non-negative integers.", {"score_a": score_a, "score_b": score_b})


class MatchProgressionEngine:
    def __init__(self, db: Session, events: EventPublisher = publisher):
        self.db = db
        self.events = events

    # --- Transaction plumbing ---

    @contextmanager
    def _transition(self, match_id: int):
        """Locks the match's tournament and runs the block in one transaction.

        Yields the freshly loaded match and a list the block appends events
        to. The events are published only once the transaction committed.
        """
        tournament_id = tournament_service.get_match(self.db, match_id).tournament_id
        pending: PendingEvents = []
        with tournament_lock(tournament_id):
            with atomic(self.db):
                match = tournament_service.get_match(self.db, match_id)
                self.db.refresh(match)
                yield match, pending
            for event_type, snapshot in pending:
                self.events.emit(event_type, snapshot)

    def _record(self, pending: PendingEvents, event_type: EventType, match: Match):
        self.db.flush()
        pending.append((event_type, MatchRead.model_validate(match)))

    # --- Guards ---

    @staticmethod
    def _ensure_mutable(tournament: Tournament, match: Match):
        if tournament.status == TournamentStatus.CANCELLED.value:
            raise StateError(f"Tournament {tournament.id} is cancelled")
        if tournament.is_round_locked(match.round_label):
            raise StateError(
                f"{match.round_label} is locked because the next round was already generated",
                {"round": match.round_label},
            )

    @staticmethod
    def _ensure_open(match: Match):
        if match.status == MatchStatus.COMPLETED.value:
            raise StateError(f"Match {match.id} is already completed")
        if match.status == MatchStatus.CANCELLED.value:
            raise StateError(f"Match {match.id} is cancelled; reactivate it first")

    @staticmethod
    def _ensure_playable(match: Match):
        if not match.has_both_participants:
            raise ValidationError(f"Match {match.id} still has a TBD participant")

    # --- Operations ---

    def start_match(self, match_id: int) -> MatchRead:
        with self._transition(match_id) as (match, pending):
            self._ensure_mutable(match.tournament, match)
            if match.status != MatchStatus.UPCOMING.value:
                raise StateError(f"Only upcoming matches can be started, match {match.id} is {match.status}")
            self._ensure_playable(match)
            match.status = MatchStatus.LIVE.value
            self._mark_live(match.tournament)
            self._record(pending, EventType.MATCH_STARTED, match)
            log.info("Match %s started", match.id)
        return MatchRead.model_validate(match)

    def update_score(self, match_id: int, score_a: int, score_b: int) -> ScoreUpdateResult:
        _check_scores(score_a, score_b)
        with self._transition(match_id) as (match, pending):
            tournament = match.tournament
            self._ensure_mutable(tournament, match)
            self._ensure_open(match)
            self._ensure_playable(match)

            reaches_target = max(score_a, score_b) >= tournament.points_to_win
            if reaches_target and score_a == score_b:
                raise ValidationError(
                    "Scores are level at or above the winning target; one side must lead.",
                    {"score_a": score_a, "score_b": score_b, "points_to_win": tournament.points_to_win},
                )

            previous_status = match.status
            match.score_a, match.score_b = score_a, score_b
            if match.status == MatchStatus.UPCOMING.value and (score_a > 0 or score_b > 0):
                match.status = MatchStatus.LIVE.value
                self._mark_live(tournament)
                self._record(pending, EventType.MATCH_STARTED, match)
            self._record(pending, EventType.SCORE_UPDATED, match)

            progression = None
            if reaches_target:
                progression = self._complete(tournament, match, pending)
            transitioned = match.status != previous_status

        return ScoreUpdateResult(match=MatchRead.model_validate(match), transitioned=transitioned,
                                 progression=progression)

    def complete_match(self, match_id: int, score_a: int, score_b: int) -> CompletionResult:
        _check_scores(score_a, score_b)
        with self._transition(match_id) as (match, pending):
            tournament = match.tournament
            self._ensure_mutable(tournament, match)
            self._ensure_open(match)
            self._ensure_playable(match)
            if score_a == score_b:
                raise ValidationError("A match cannot end in a draw.", {"score_a": score_a, "score_b": score_b})

            match.score_a, match.score_b = score_a, score_b
            progression = self._complete(tournament, match, pending)

        return CompletionResult(match=MatchRead.model_validate(match), winner=match.winner_id,
                                progression=progression)

    def cancel_match(self, match_id: int) -> MatchRead:
        with self._transition(match_id) as (match, pending):
            tournament = match.tournament
            self._ensure_mutable(tournament, match)
            if match.status == MatchStatus.COMPLETED.value:
                raise StateError(f"Match {match.id} is completed and cannot be cancelled")
            if match.status == MatchStatus.CANCELLED.value:
                raise StateError(f"Match {match.id} is already cancelled")

            match.status = MatchStatus.CANCELLED.value
            match.score_a = match.score_b = 0
            self._record(pending, EventType.MATCH_CANCELLED, match)
            log.info("Match %s cancelled", match.id)
            self._advance(tournament, match.round_kind)
        return MatchRead.model_validate(match)

    def reactivate_match(self, match_id: int) -> MatchRead:
        with self._transition(match_id) as (match, pending):
            self._ensure_mutable(match.tournament, match)
            if match.status != MatchStatus.CANCELLED.value:
                raise StateError(f"Only cancelled matches can be reactivated, match {match.id} is {match.status}")
            match.status = MatchStatus.UPCOMING.value
            match.score_a = match.score_b = 0
            self._record(pending, EventType.MATCH_REACTIVATED, match)
            log.info("Match %s reactivated", match.id)
        return MatchRead.model_validate(match)

    def edit_match(self, match_id: int, changes: dict) -> MatchRead:
        """Applies ``participant_a_id``, ``participant_b_id`` and ``court_number``
        from ``changes``; keys that are absent stay as they are.
        """
        with self._transition(match_id) as (match, _):
            tournament = match.tournament
            self._ensure_mutable(tournament, match)

            participant_a = changes.get("participant_a_id", match.participant_a_id)
            participant_b = changes.get("participant_b_id", match.participant_b_id)
            swaps_participants = (participant_a, participant_b) != (match.participant_a_id, match.participant_b_id)
            if swaps_participants:
                if match.status == MatchStatus.COMPLETED.value:
                    raise StateError(f"Match {match.id} is completed; its participants cannot change")
                for participant_id in (participant_a, participant_b):
                    if participant_id is not None:
                        tournament_service.get_participant(self.db, tournament.id, participant_id)
                if participant_a is not None and participant_a == participant_b:
                    raise ValidationError("A participant cannot play against themselves")

            match.participant_a_id, match.participant_b_id = participant_a, participant_b
            if "court_number" in changes:
                match.court_number = changes["court_number"]
        return MatchRead.model_validate(match)

    def delete_match(self, match_id: int) -> Progression:
        """Removes a match; its round is re-evaluated as if the match never existed."""
        with self._transition(match_id) as (match, _):
            tournament = match.tournament
            self._ensure_mutable(tournament, match)
            kind = match.round_kind
            self.db.delete(match)
            log.info("Match %s deleted from %s", match_id, kind.label)
            progression = self._advance(tournament, kind)
        return progression

    def start_knockout_stage(self, tournament_id: int) -> Progression:
        """Hands a finished group stage to the knockout bracket on demand."""
        with tournament_lock(tournament_id), atomic(self.db):
            tournament = tournament_service.get_tournament(self.db, tournament_id)
            if tournament.format != TournamentFormat.GROUP.value:
                raise ValidationError("Only group tournaments have a knockout stage to start.")
            progression = self._hand_off_to_knockout(tournament, Progression(round_complete=True))
            if not progression.next_round_generated:
                raise StateError("The group stage is not complete or the knockout stage already exists.")
        return progression

    # --- Progression ---

    def _complete(self, tournament: Tournament, match: Match, pending: PendingEvents) -> Progression:
        match.status = MatchStatus.COMPLETED.value
        self._mark_live(tournament)
        self._record(pending, EventType.MATCH_COMPLETED, match)
        log.info("Match %s completed %d-%d, winner %s", match.id, match.score_a, match.score_b, match.winner_id)
        return self._advance(tournament, match.round_kind)

    def _round_matches(self, tournament: Tournament, kind: RoundKind) -> List[Match]:
        return tournament_service.list_matches(self.db, tournament.id, round_label=kind.label)

    def _advance(self, tournament: Tournament, kind: RoundKind) -> Progression:
        self.db.flush()
        matches = self._round_matches(tournament, kind)
        progression = Progression(round_complete=is_round_complete(round_stats(
            MatchRead.model_validate(m) for m in matches)))
        if not progression.round_complete:
            return progression

        if kind.is_knockout:
            return self._advance_knockout(tournament, kind, matches, progression)
        if kind.is_group and tournament.format == TournamentFormat.GROUP.value:
            return self._hand_off_to_knockout(tournament, progression)
        if kind.tag is RoundTag.ROUND_ROBIN:
            self._finish_tournament(tournament, kind, progression)
        return progression

    @staticmethod
    def _mark_live(tournament: Tournament):
        if tournament.status in _NOT_STARTED:
            log.info("Tournament %s is now live", tournament.id)
            tournament.status = TournamentStatus.LIVE.value

    def _lock(self, tournament: Tournament, label: str, progression: Progression):
        if tournament.lock_round(label):
            progression.locked_rounds.append(label)
            log.info("Locked %s in tournament %s", label, tournament.id)

    def _finish_tournament(self, tournament: Tournament, kind: RoundKind, progression: Progression):
        tournament.status = TournamentStatus.COMPLETED.value
        self._lock(tournament, kind.label, progression)
        progression.tournament_complete = True
        log.info("Tournament %s completed", tournament.id)

    def _advance_knockout(self, tournament: Tournament, kind: RoundKind, matches: Sequence[Match],
                          progression: Progression) -> Progression:
        winners = [m.winner_id for m in matches if m.winner_id is not None]
        if not winners:
            log.warning("%s in tournament %s finished without winners; nothing to advance", kind.label, tournament.id)
            return progression

        next_kind = kind.next_knockout()
        if next_kind is None:
            self._finish_tournament(tournament, kind, progression)
            return progression

        existing = self._round_matches(tournament, next_kind)
        if existing:
            self._fill_open_slots(existing, winners)
        else:
            fixtures = fixture_generator.generate_next_knockout_round(
                winners, next_kind, start_order=tournament_service.next_order(self.db, tournament.id))
            tournament_service.persist_fixtures(self.db, tournament.id, fixtures)

        self._lock(tournament, kind.label, progression)
        tournament.current_round = next_kind.label
        progression.next_round_generated = True
        progression.next_round = next_kind.label
        log.info("Advanced %d winners of %s into %s", len(winners), kind.label, next_kind.label)
        return progression

    @staticmethod
    def _fill_open_slots(matches: Sequence[Match], winners: Sequence[int]):
        """Places winners into the TBD slots of an existing round, in order."""
        queue = [w for w in winners if not any(w in (m.participant_a_id, m.participant_b_id) for m in matches)]
        for match in matches:
            if match.participant_a_id is None and queue:
                match.participant_a_id = queue.pop(0)
            if match.participant_b_id is None and queue:
                match.participant_b_id = queue.pop(0)
        if queue:
            log.warning("No open slot left for winners %s", queue)

    def _hand_off_to_knockout(self, tournament: Tournament, progression: Progression) -> Progression:
        all_matches = tournament_service.list_matches(self.db, tournament.id)
        group_matches = [MatchRead.model_validate(m) for m in all_matches if m.round_kind.is_group]
        if any(m.round_kind.is_knockout for m in all_matches):
            return progression

        group_labels = sorted({m.round_label for m in group_matches})
        for label in group_labels:
            if not is_round_complete(round_stats(m for m in group_matches if m.round_label == label)):
                return progression

        per_group = tournament.qualifiers_per_group
        if not per_group:
            log.warning("Tournament %s has no qualifiers_per_group; knockout stage not started", tournament.id)
            return progression

        participants = [ParticipantRead.model_validate(p)
                        for p in tournament_service.list_participants(self.db, tournament.id)]
        qualifiers = select_qualifiers(calculate_group_standings(participants, group_matches), per_group)
        if tournament.cross_group_seeding:
            ordered = fixture_generator.seed_cross_group(qualifiers)
        else:
            ordered = concatenate_qualifiers(qualifiers)

        structure = KnockoutStructure(tournament.knockout_structure) if tournament.knockout_structure else None
        fixtures = fixture_generator.generate_knockout(
            ordered, structure, start_order=tournament_service.next_order(self.db, tournament.id))
        tournament_service.persist_fixtures(self.db, tournament.id, fixtures)

        for label in group_labels:
            self._lock(tournament, label, progression)
        first_round = fixtures[0].round.label
        tournament.current_round = first_round
        progression.next_round_generated = True
        progression.next_round = first_round
        log.info("Group stage of tournament %s complete; %d qualifiers into %s",
                 tournament.id, len(ordered), first_round)
        return progression


