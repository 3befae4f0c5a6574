from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from pickleball.core.database import Base
from pickleball.models.enums import MatchStatus
from pickleball.models.round_kind import RoundKind, RoundTag

class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    round_tag = Column(String, nullable=False)
    round_detail = Column(String, nullable=True)  # group letter or custom round name
    round_label = Column(String, nullable=False, index=True)
    participant_a_id = Column(Integer, ForeignKey("participants.id"), nullable=True)  # None = TBD
    participant_b_id = Column(Integer, ForeignKey("participants.id"), nullable=True)  # None = TBD
    status = Column(String, nullable=False, default=MatchStatus.UPCOMING.value, index=True)
    score_a = Column(Integer, nullable=False, default=0)
    score_b = Column(Integer, nullable=False, default=0)
    court_number = Column(Integer, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    tournament = relationship("Tournament", back_populates="matches")
    participant_a = relationship("Participant", foreign_keys=[participant_a_id])
    participant_b = relationship("Participant", foreign_keys=[participant_b_id])

    @property
    def round_kind(self) -> RoundKind:
        return RoundKind(RoundTag(self.round_tag), self.round_detail)

    @round_kind.setter
    def round_kind(self, kind: RoundKind):
        self.round_tag = kind.tag.value
        self.round_detail = kind.detail
        self.round_label = kind.label

    @property
    def has_both_participants(self) -> bool:
        return self.participant_a_id is not None and self.participant_b_id is not None

    @property
    def winner_id(self):
        """Derived from the score; only defined once the match is completed."""
        if self.status != MatchStatus.COMPLETED.value:
            return None
        if self.score_a > self.score_b:
            return self.participant_a_id
        if self.score_b > self.score_a:
            return self.participant_b_id
        return None
