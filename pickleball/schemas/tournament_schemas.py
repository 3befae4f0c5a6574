from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pickleball.core.config import settings
from pickleball.models.enums import (
    KnockoutStructure,
    ScoringSystem,
    TournamentFormat,
    TournamentStatus,
    TournamentType,
)

ALLOWED_POINTS_TO_WIN = (11, 15)


class Rules(BaseModel):
    points_to_win: int = Field(default_factory=lambda: settings.DEFAULT_POINTS_TO_WIN)
    scoring_system: ScoringSystem = ScoringSystem.RALLY

    @field_validator("points_to_win")
    @classmethod
    def points_to_win_allowed(cls, v):
        if v not in ALLOWED_POINTS_TO_WIN:
            raise ValueError(f"Points to win must be one of {ALLOWED_POINTS_TO_WIN}")
        return v


class TournamentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    type: TournamentType
    format: TournamentFormat
    rules: Rules = Field(default_factory=Rules)
    is_public: bool = True


class TournamentRead(BaseModel):
    id: int
    name: str
    type: TournamentType
    format: TournamentFormat
    points_to_win: int
    scoring_system: ScoringSystem
    status: TournamentStatus
    current_round: Optional[str] = None
    is_public: bool
    locked_rounds: List[str] = Field(default_factory=list)
    qualifiers_per_group: Optional[int] = None
    knockout_structure: Optional[KnockoutStructure] = None
    cross_group_seeding: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("locked_rounds", mode="before")
    @classmethod
    def sorted_locks(cls, v):
        return sorted(v)
