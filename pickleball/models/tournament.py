from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from pickleball.core.database import Base
from pickleball.models.enums import TournamentStatus
import datetime

class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # "singles" or "doubles"
    format = Column(String, nullable=False)  # "round-robin", "group", "knockout", "custom"
    points_to_win = Column(Integer, nullable=False, default=11)
    scoring_system = Column(String, nullable=False, default="rally")
    status = Column(String, nullable=False, default=TournamentStatus.DRAFT.value, index=True)
    current_round = Column(String, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    # Group -> knockout handoff, captured when group fixtures are generated
    qualifiers_per_group = Column(Integer, nullable=True)
    knockout_structure = Column(String, nullable=True)
    cross_group_seeding = Column(Boolean, nullable=False, default=False)

    participants = relationship("Participant", back_populates="tournament", cascade="all, delete-orphan")
    matches = relationship("Match", back_populates="tournament", cascade="all, delete-orphan")
    round_locks = relationship("RoundLock", back_populates="tournament", cascade="all, delete-orphan")

    @property
    def locked_rounds(self) -> set:
        return {lock.round_label for lock in self.round_locks}

    def is_round_locked(self, round_label: str) -> bool:
        return round_label in self.locked_rounds

    def lock_round(self, round_label: str) -> bool:
        """Marks a round as consumed. Returns False if it was already locked."""
        if self.is_round_locked(round_label):
            return False
        self.round_locks.append(RoundLock(round_label=round_label))
        return True


class RoundLock(Base):
    __tablename__ = "round_locks"
    __table_args__ = (UniqueConstraint("tournament_id", "round_label"),)

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False)
    round_label = Column(String, nullable=False)
    locked_at = Column(DateTime, default=datetime.datetime.utcnow)

    tournament = relationship("Tournament", back_populates="round_locks")
