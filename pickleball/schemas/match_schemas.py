from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from pickleball.models.enums import MatchStatus
from pickleball.models.round_kind import RoundKind, RoundTag


class MatchRead(BaseModel):
    id: int
    tournament_id: int
    round_tag: RoundTag
    round_detail: Optional[str] = None
    round_label: str
    participant_a_id: Optional[int] = None  # None = TBD
    participant_b_id: Optional[int] = None  # None = TBD
    status: MatchStatus
    score_a: int = 0
    score_b: int = 0
    court_number: Optional[int] = None
    order: int = 0
    winner_id: Optional[int] = None

    class Config:
        from_attributes = True

    @property
    def round_kind(self) -> RoundKind:
        return RoundKind(self.round_tag, self.round_detail)

    @property
    def has_both_participants(self) -> bool:
        return self.participant_a_id is not None and self.participant_b_id is not None


class ScoreUpdate(BaseModel):
    score_a: int = Field(ge=0)
    score_b: int = Field(ge=0)


class MatchEdit(BaseModel):
    participant_a_id: Optional[int] = None
    participant_b_id: Optional[int] = None
    court_number: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def distinct_participants(self):
        if self.participant_a_id is not None and self.participant_a_id == self.participant_b_id:
            raise ValueError("A participant cannot play against themselves")
        return self


class Progression(BaseModel):
    round_complete: bool = False
    next_round_generated: bool = False
    tournament_complete: bool = False
    locked_rounds: List[str] = Field(default_factory=list)
    next_round: Optional[str] = None


class ScoreUpdateResult(BaseModel):
    match: MatchRead
    transitioned: bool
    progression: Optional[Progression] = None


class CompletionResult(BaseModel):
    match: MatchRead
    winner: int
    progression: Progression
