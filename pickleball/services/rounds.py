from typing import Dict, Iterable, List, Optional, Sequence

from pickleball.models.enums import MatchStatus
from pickleball.schemas.match_schemas import MatchRead
from pickleball.schemas.round_schemas import RoundStats, RoundSummary


def round_stats(matches: Iterable[MatchRead]) -> RoundStats:
    stats = RoundStats()
    for match in matches:
        stats.total += 1
        if match.status == MatchStatus.UPCOMING:
            stats.upcoming += 1
        elif match.status == MatchStatus.LIVE:
            stats.live += 1
        elif match.status == MatchStatus.COMPLETED:
            stats.completed += 1
        elif match.status == MatchStatus.CANCELLED:
            stats.cancelled += 1
    return stats


def is_round_complete(stats: RoundStats) -> bool:
    return stats.total > 0 and stats.completed + stats.cancelled == stats.total


def summarize_rounds(matches: Sequence[MatchRead], locked_rounds: Optional[Iterable[str]] = None) -> List[RoundSummary]:
    """Derived Round view: one summary per round label, in first-match order."""
    locked = set(locked_rounds or ())
    by_label: Dict[str, List[MatchRead]] = {}
    for match in sorted(matches, key=lambda m: m.order):
        by_label.setdefault(match.round_label, []).append(match)

    summaries = []
    for label, round_matches in by_label.items():
        stats = round_stats(round_matches)
        summaries.append(RoundSummary(
            label=label,
            tag=round_matches[0].round_tag,
            stats=stats,
            is_complete=is_round_complete(stats),
            is_locked=label in locked,
        ))
    return summaries
