from pydantic import BaseModel, Field
from typing import List, Optional

class ParticipantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    players: List[str] = Field(min_length=1, max_length=2)
    seed: Optional[int] = Field(default=None, ge=1)

class ParticipantRead(BaseModel):
    id: int
    tournament_id: int
    name: str
    players: List[str]
    seed: Optional[int] = None

    class Config:
        from_attributes = True
