from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from pickleball.models.enums import KnockoutStructure
from pickleball.models.round_kind import RoundKind


class FixtureMatch(BaseModel):
    """A match produced by the fixture generator, not yet persisted."""

    round: RoundKind
    participant_a_id: Optional[int] = None  # None = TBD
    participant_b_id: Optional[int] = None  # None = TBD
    order: int

    class Config:
        frozen = True


class FixtureOptions(BaseModel):
    # group stage
    num_groups: Optional[int] = Field(default=None, ge=1)
    min_per_group: int = 2
    max_per_group: Optional[int] = None
    qualifiers_per_group: Optional[int] = Field(default=None, ge=1)
    cross_group_seeding: bool = False
    # knockout
    knockout_structure: Optional[KnockoutStructure] = None
    # custom
    round_name: Optional[str] = None
    participant_ids: Optional[List[int]] = None
    # group draw order
    shuffle: bool = False


class FixtureResult(BaseModel):
    matches_created: int
    by_round: Dict[str, int]
    current_round: Optional[str] = None
    group_distribution: Optional[List[int]] = None


class CustomRoundCreate(BaseModel):
    round_name: str = Field(min_length=1, max_length=100)
    participant_ids: Optional[List[int]] = None
