from pickleball.core.database import Base, engine

# Import all models here to ensure they are registered with Base
from .tournament import Tournament, RoundLock
from .participant import Participant
from .match import Match


def create_tables(bind=engine):
    Base.metadata.create_all(bind=bind)
