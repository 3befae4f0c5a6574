from typing import Dict, List

from pydantic import BaseModel, Field

from pickleball.models.enums import HeadToHead


class StandingParticipant(BaseModel):
    id: int
    name: str
    players: List[str] = Field(default_factory=list)


class StandingStats(BaseModel):
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0
    point_difference: int = 0
    win_rate: float = 0.0
    head_to_head: Dict[int, HeadToHead] = Field(default_factory=dict)


class Standing(BaseModel):
    participant: StandingParticipant
    stats: StandingStats
    position: int = 0


class GroupStandings(BaseModel):
    group_name: str
    letter: str
    standings: List[Standing]
