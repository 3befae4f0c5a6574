"""
Fixture generation for every tournament format.

All functions here are pure: they take participant ids and return
``FixtureMatch`` objects that the caller persists. Nothing touches the
database, so the pairing rules can be tested in isolation.
"""
import logging
import random
import string
from typing import Dict, List, Optional, Sequence, Tuple

from pickleball.core.exceptions import ValidationError
from pickleball.models.enums import KnockoutStructure
from pickleball.models.round_kind import ROUND_ROBIN, RoundKind
from pickleball.schemas.fixture_schemas import FixtureMatch

log = logging.getLogger(__name__)

ParticipantId = int


def _require_at_least_two(participants: Sequence[ParticipantId], what: str):
    if len(participants) < 2:
        raise ValidationError(
            f"{what} requires at least 2 participants, got {len(participants)}.",
            {"participants": len(participants)},
        )
    if len(set(participants)) != len(participants):
        raise ValidationError(f"{what} received duplicate participants.")


def _round_robin_pairs(participants: Sequence[ParticipantId]) -> List[Tuple[ParticipantId, ParticipantId]]:
    """Circle-method rotations; every unordered pair appears exactly once.

    With an odd count a ``None`` slot is added and whoever meets it sits out
    that rotation (the bye), so no match is produced for it.
    """
    slots: List[Optional[ParticipantId]] = list(participants)
    if len(slots) % 2:
        slots.append(None)

    n = len(slots)
    pairs = []
    for _ in range(n - 1):
        for i in range(n // 2):
            home, away = slots[i], slots[n - 1 - i]
            if home is not None and away is not None:
                pairs.append((home, away))
        # Keep the first slot fixed and rotate the rest clockwise
        slots = [slots[0], slots[-1]] + slots[1:-1]
    return pairs


def generate_round_robin(participants: Sequence[ParticipantId], round_kind: RoundKind = ROUND_ROBIN,
                         start_order: int = 0) -> List[FixtureMatch]:
    """One match per unordered pair: n*(n-1)/2 matches in total."""
    _require_at_least_two(participants, "Round robin")

    matches = [
        FixtureMatch(round=round_kind, participant_a_id=a, participant_b_id=b, order=start_order + i)
        for i, (a, b) in enumerate(_round_robin_pairs(participants))
    ]

    expected = len(participants) * (len(participants) - 1) // 2
    if len(matches) != expected:
        raise RuntimeError(f"Round robin produced {len(matches)} matches, expected {expected}")
    return matches


def calculate_group_distribution(total: int, num_groups: int) -> List[int]:
    """Group sizes as equal as possible; the remainder goes to the first groups."""
    if num_groups < 1:
        raise ValidationError("Number of groups must be at least 1.", {"num_groups": num_groups})
    base, remainder = divmod(total, num_groups)
    return [base + (1 if i < remainder else 0) for i in range(num_groups)]


def group_letter(index: int) -> str:
    if index >= len(string.ascii_uppercase):
        raise ValidationError("At most 26 groups are supported.", {"num_groups": index + 1})
    return string.ascii_uppercase[index]


def partition_into_groups(participants: Sequence[ParticipantId], num_groups: int,
                          min_per_group: int, max_per_group: int) -> Dict[str, List[ParticipantId]]:
    if min_per_group < 2 or max_per_group < min_per_group:
        raise ValidationError(
            "Invalid group bounds: need 2 <= min_per_group <= max_per_group.",
            {"min_per_group": min_per_group, "max_per_group": max_per_group},
        )

    distribution = calculate_group_distribution(len(participants), num_groups)
    if min(distribution) < min_per_group or max(distribution) > max_per_group:
        raise ValidationError(
            f"Group distribution ({', '.join(str(s) for s in distribution)}) "
            f"doesn't meet min/max requirements ({min_per_group}-{max_per_group}).",
            {"distribution": distribution, "min_per_group": min_per_group, "max_per_group": max_per_group},
        )

    groups = {}
    start = 0
    for index, size in enumerate(distribution):
        groups[group_letter(index)] = list(participants[start:start + size])
        start += size
    return groups


def generate_group_stage(participants: Sequence[ParticipantId], num_groups: int,
                         min_per_group: int, max_per_group: int) -> List[FixtureMatch]:
    """Round robin inside each group, rounds labelled ``Group A``, ``Group B``..."""
    _require_at_least_two(participants, "Group stage")
    groups = partition_into_groups(participants, num_groups, min_per_group, max_per_group)

    matches: List[FixtureMatch] = []
    for letter, members in groups.items():
        matches.extend(generate_round_robin(members, RoundKind.group(letter), start_order=len(matches)))

    log.info("Generated group stage: %d groups, %d matches", len(groups), len(matches))
    return matches


def _pair_sequentially(participants: Sequence[Optional[ParticipantId]], round_kind: RoundKind,
                       start_order: int) -> List[FixtureMatch]:
    matches = []
    for i in range(0, len(participants), 2):
        a = participants[i]
        b = participants[i + 1] if i + 1 < len(participants) else None
        matches.append(FixtureMatch(round=round_kind, participant_a_id=a, participant_b_id=b,
                                    order=start_order + len(matches)))
    return matches


def generate_knockout(qualified: Sequence[ParticipantId],
                      structure: Optional[KnockoutStructure] = None,
                      start_order: int = 0) -> List[FixtureMatch]:
    """First knockout round for 2, 4 or 8 qualified participants.

    Pairs sequentially: qualified[0] vs qualified[1], qualified[2] vs
    qualified[3], and so on. When ``structure`` is omitted it is inferred from
    the count.
    """
    _require_at_least_two(qualified, "Knockout")

    if structure is None:
        try:
            structure = KnockoutStructure.for_size(len(qualified))
        except ValueError:
            raise ValidationError(
                f"Knockout requires 2, 4 or 8 participants for a clean bracket, got {len(qualified)}.",
                {"qualified": len(qualified), "allowed": [s.size for s in KnockoutStructure]},
            )

    expected = structure.size
    if len(qualified) != expected:
        diff = expected - len(qualified)
        details = {"qualified": len(qualified), "expected": expected}
        if diff > 0:
            details["missing"] = diff
            message = f"{structure.value} bracket needs {expected} participants: {diff} missing."
        else:
            details["excess"] = -diff
            message = f"{structure.value} bracket needs {expected} participants: {-diff} too many."
        raise ValidationError(message, details)

    return _pair_sequentially(list(qualified), RoundKind.for_structure(structure), start_order)


def generate_next_knockout_round(winners: Sequence[ParticipantId], round_kind: RoundKind,
                                 start_order: int = 0) -> List[FixtureMatch]:
    """Pairs consecutive winners of the previous round: ceil(m/2) matches.

    An odd trailing winner gets a match against TBD which an admin resolves
    before it can be scored.
    """
    if not winners:
        raise ValidationError("No winners to advance into the next round.")
    if not round_kind.is_knockout:
        raise ValidationError(f"{round_kind.label} is not a knockout round.")
    return _pair_sequentially(list(winners), round_kind, start_order)


def seed_cross_group(qualifiers_by_group: Dict[str, List[ParticipantId]]) -> List[ParticipantId]:
    """Orders qualifiers so that sequential pairing crosses groups.

    Group i is matched against group g-1-i, top of one against bottom of the
    other: for four groups of two this yields A1-D2, A2-D1, B1-C2, B2-C1.
    """
    letters = sorted(qualifiers_by_group)
    ordered: List[ParticipantId] = []
    for i in range(len(letters) // 2):
        first = qualifiers_by_group[letters[i]]
        second = qualifiers_by_group[letters[len(letters) - 1 - i]]
        if len(first) != len(second):
            raise ValidationError("Cross-group seeding needs the same number of qualifiers per group.")
        for rank, participant in enumerate(first):
            ordered.append(participant)
            ordered.append(second[len(second) - 1 - rank])
    if len(letters) % 2:
        # The middle group has no mirror; its qualifiers meet each other last
        ordered.extend(qualifiers_by_group[letters[len(letters) // 2]])
    return ordered


def generate_custom_round(round_name: str, participant_ids: Optional[Sequence[ParticipantId]],
                          available: Sequence[ParticipantId], start_order: int = 0,
                          rng: Optional[random.Random] = None) -> List[FixtureMatch]:
    """Ad-hoc round for custom tournaments.

    With ``participant_ids`` of ``None`` every available participant is paired
    at random; explicit ids are paired in the order given. An odd participant
    out gets a TBD-partner placeholder match.
    """
    if not round_name or not round_name.strip():
        raise ValidationError("Round name is required.")

    if participant_ids is None:
        rng = rng or random
        pool = rng.sample(list(available), len(available))
    else:
        known = set(available)
        unknown = [p for p in participant_ids if p not in known]
        if unknown:
            raise ValidationError("Some participants do not belong to this tournament.", {"unknown": unknown})
        pool = list(participant_ids)

    _require_at_least_two(pool, "A custom round")
    return _pair_sequentially(pool, RoundKind.custom(round_name), start_order)
