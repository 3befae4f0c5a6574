from typing import Dict, List, Sequence

from pickleball.core.exceptions import ValidationError
from pickleball.models.round_kind import RoundKind
from pickleball.schemas.match_schemas import MatchRead
from pickleball.schemas.participant_schemas import ParticipantRead
from pickleball.schemas.standings_schemas import GroupStandings
from pickleball.services.standings_calculator import calculate_standings


def group_members(matches: Sequence[MatchRead]) -> Dict[str, List[int]]:
    """Group letter -> participant ids, in order of first appearance.

    Membership comes from the group's fixtures regardless of match status,
    so a participant whose matches were all cancelled still has a row.
    """
    members: Dict[str, List[int]] = {}
    for match in sorted(matches, key=lambda m: m.order):
        kind = match.round_kind
        if not kind.is_group:
            continue
        seen = members.setdefault(kind.detail, [])
        for participant_id in (match.participant_a_id, match.participant_b_id):
            if participant_id is not None and participant_id not in seen:
                seen.append(participant_id)
    return dict(sorted(members.items()))


def calculate_group_standings(participants: Sequence[ParticipantRead],
                              matches: Sequence[MatchRead]) -> List[GroupStandings]:
    """Runs the standings calculator independently for every group."""
    by_id = {p.id: p for p in participants}
    results = []
    for letter, member_ids in group_members(matches).items():
        label = RoundKind.group(letter).label
        group_matches = [m for m in matches if m.round_label == label]
        group_participants = [by_id[pid] for pid in member_ids if pid in by_id]
        results.append(GroupStandings(
            group_name=label,
            letter=letter,
            standings=calculate_standings(group_participants, group_matches),
        ))
    return results


def select_qualifiers(group_standings: Sequence[GroupStandings], per_group: int) -> Dict[str, List[int]]:
    """Top ``per_group`` participant ids of every group, in rank order."""
    if per_group < 1:
        raise ValidationError("At least one qualifier per group is required.", {"per_group": per_group})

    qualifiers = {}
    for group in group_standings:
        if len(group.standings) < per_group:
            raise ValidationError(
                f"{group.group_name} has {len(group.standings)} participants, cannot qualify {per_group}.",
                {"group": group.group_name, "size": len(group.standings), "per_group": per_group},
            )
        qualifiers[group.letter] = [s.participant.id for s in group.standings[:per_group]]
    return qualifiers


def concatenate_qualifiers(qualifiers: Dict[str, List[int]]) -> List[int]:
    """Group order first, then rank order within the group."""
    return [pid for letter in sorted(qualifiers) for pid in qualifiers[letter]]
