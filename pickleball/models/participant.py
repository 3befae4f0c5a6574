from sqlalchemy import JSON, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from pickleball.core.database import Base

class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    players = Column(JSON, nullable=False, default=list)  # 1 name for singles, 2 for doubles
    seed = Column(Integer, nullable=True)

    tournament = relationship("Tournament", back_populates="participants")
