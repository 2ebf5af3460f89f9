from enum import IntEnum

from sqlalchemy import Column, Integer, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.core.database import Base


class MatchOutcome(IntEnum):
    UNRESOLVED = -1
    LOST = 0
    WON = 1


class PlayerChallenge(Base):
    __tablename__ = "player_challenges"

    challenge_id = Column(Integer, ForeignKey("challenges.id"), primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id"), primary_key=True, index=True)
    did_initiate = Column(Boolean, nullable=False)
    did_win = Column(Integer, nullable=False, default=int(MatchOutcome.UNRESOLVED))

    # Relationships
    challenge = relationship("Challenge", back_populates="player_challenges")
    player = relationship("Player", back_populates="player_challenges")

    __table_args__ = (
        CheckConstraint('did_win IN (-1, 0, 1)', name='valid_did_win'),
    )

    @property
    def outcome(self) -> MatchOutcome:
        return MatchOutcome(self.did_win)
