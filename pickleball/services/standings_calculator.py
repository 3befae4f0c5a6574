"""
Standings with multi-criteria tie-breaking.

Ranking priority:
  1. wins
  2. point difference (points for - points against)
  3. points for
  4. head-to-head result between the two tied participants

Participants still level after that keep their input order.
"""
from functools import cmp_to_key
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from pickleball.models.enums import HeadToHead, MatchStatus
from pickleball.schemas.match_schemas import MatchRead
from pickleball.schemas.participant_schemas import ParticipantRead
from pickleball.schemas.standings_schemas import Standing, StandingParticipant, StandingStats


def counted_matches(matches: Sequence[MatchRead]) -> List[MatchRead]:
    """Completed matches with both participants resolved."""
    return [m for m in matches if m.status == MatchStatus.COMPLETED and m.has_both_participants]


def _head_to_head_lookup(matches: Sequence[MatchRead]) -> Mapping[Tuple[int, int], HeadToHead]:
    """(participant, opponent) -> result of their latest meeting, read-only."""
    results: Dict[Tuple[int, int], HeadToHead] = {}
    for match in sorted(matches, key=lambda m: m.order):
        a, b = match.participant_a_id, match.participant_b_id
        if match.score_a > match.score_b:
            results[(a, b)], results[(b, a)] = HeadToHead.WIN, HeadToHead.LOSS
        elif match.score_b > match.score_a:
            results[(a, b)], results[(b, a)] = HeadToHead.LOSS, HeadToHead.WIN
    return MappingProxyType(results)


def calculate_standings(participants: Sequence[ParticipantRead], matches: Sequence[MatchRead]) -> List[Standing]:
    completed = counted_matches(matches)
    head_to_head = _head_to_head_lookup(completed)

    stats: Dict[int, StandingStats] = {p.id: StandingStats() for p in participants}
    for match in completed:
        sides = (
            (match.participant_a_id, match.participant_b_id, match.score_a, match.score_b),
            (match.participant_b_id, match.participant_a_id, match.score_b, match.score_a),
        )
        for participant_id, opponent_id, scored, conceded in sides:
            entry = stats.get(participant_id)
            if entry is None:
                continue  # not one of the participants being ranked
            entry.matches_played += 1
            entry.points_for += scored
            entry.points_against += conceded
            if scored > conceded:
                entry.wins += 1
            else:
                entry.losses += 1
            result = head_to_head.get((participant_id, opponent_id))
            if result is not None:
                entry.head_to_head[opponent_id] = result

    for entry in stats.values():
        entry.point_difference = entry.points_for - entry.points_against
        if entry.matches_played:
            entry.win_rate = round(entry.wins / entry.matches_played * 100, 1)

    standings = [
        Standing(
            participant=StandingParticipant(id=p.id, name=p.name, players=list(p.players)),
            stats=stats[p.id],
        )
        for p in participants
    ]

    def compare(x: Standing, y: Standing) -> int:
        for key in ("wins", "point_difference", "points_for"):
            diff = getattr(y.stats, key) - getattr(x.stats, key)
            if diff:
                return diff
        result = head_to_head.get((x.participant.id, y.participant.id))
        if result is HeadToHead.WIN:
            return -1
        if result is HeadToHead.LOSS:
            return 1
        return 0

    standings.sort(key=cmp_to_key(compare))
    for position, standing in enumerate(standings, start=1):
        standing.position = position
    return standings
