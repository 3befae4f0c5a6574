from sqlalchemy.orm import Session
from fastapi import Depends

from pickleball.core.database import SessionLocal
from pickleball.services import event_service
from pickleball.services.event_service import EventPublisher
from pickleball.services.match_progression import MatchProgressionEngine

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_publisher() -> EventPublisher:
    return event_service.publisher

def get_engine(
    db: Session = Depends(get_db),
    events: EventPublisher = Depends(get_publisher),
) -> MatchProgressionEngine:
    return MatchProgressionEngine(db, events)
