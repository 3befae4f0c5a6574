from enum import Enum


class TournamentType(str, Enum):
    SINGLES = "singles"
    DOUBLES = "doubles"

    @property
    def players_per_side(self) -> int:
        return 1 if self is TournamentType.SINGLES else 2


class TournamentFormat(str, Enum):
    ROUND_ROBIN = "round-robin"
    GROUP = "group"
    KNOCKOUT = "knockout"
    CUSTOM = "custom"


class TournamentStatus(str, Enum):
    DRAFT = "draft"
    COMING_SOON = "comingSoon"
    LIVE = "live"
    DELAYED = "delayed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ScoringSystem(str, Enum):
    RALLY = "rally"
    PICKLEBALL = "pickleball"


class MatchStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class KnockoutStructure(str, Enum):
    DIRECT_FINAL = "directFinal"
    SEMIFINAL = "semifinal"
    QUARTERFINAL = "quarterfinal"

    @property
    def size(self) -> int:
        return {
            KnockoutStructure.DIRECT_FINAL: 2,
            KnockoutStructure.SEMIFINAL: 4,
            KnockoutStructure.QUARTERFINAL: 8,
        }[self]

    @classmethod
    def for_size(cls, size: int) -> "KnockoutStructure":
        for structure in cls:
            if structure.size == size:
                return structure
        raise ValueError(f"No knockout structure for {size} participants")


class HeadToHead(str, Enum):
    WIN = "win"
    LOSS = "loss"


class EventType(str, Enum):
    MATCH_STARTED = "match_started"
    SCORE_UPDATED = "score_updated"
    MATCH_COMPLETED = "match_completed"
    MATCH_CANCELLED = "match_cancelled"
    MATCH_REACTIVATED = "match_reactivated"
