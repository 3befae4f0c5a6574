from datetime import datetime

from pydantic import BaseModel, Field

from pickleball.models.enums import EventType
from pickleball.schemas.match_schemas import MatchRead


class MatchEvent(BaseModel):
    type: EventType
    tournament_id: int
    match_id: int
    match: MatchRead
    timestamp: datetime = Field(default_factory=datetime.utcnow)
