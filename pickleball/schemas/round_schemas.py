from pydantic import BaseModel

from pickleball.models.round_kind import RoundTag


class RoundStats(BaseModel):
    total: int = 0
    upcoming: int = 0
    live: int = 0
    completed: int = 0
    cancelled: int = 0


class RoundSummary(BaseModel):
    label: str
    tag: RoundTag
    stats: RoundStats
    is_complete: bool
    is_locked: bool = False
