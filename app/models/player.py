from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base
from app.core.ladder_config import DEFAULT_ELO


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    contact_no = Column(String(30))
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    club_id = Column(Integer, ForeignKey("clubs.id"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Rating state, written only when a result is posted
    elo = Column(Integer, default=DEFAULT_ELO, nullable=False, index=True)
    win_streak = Column(Integer, default=0, nullable=False)
    hot_streak = Column(Boolean, default=False, nullable=False)
    matches_played = Column(Integer, default=0, nullable=False)
    wins = Column(Integer, default=0, nullable=False)
    losses = Column(Integer, default=0, nullable=False)
    highest_elo = Column(Integer, default=DEFAULT_ELO, nullable=False)
    club_champ = Column(Boolean, default=False, nullable=False)

    # Relationships
    club = relationship("Club", back_populates="players")
    player_challenges = relationship("PlayerChallenge", back_populates="player")
    player_achievements = relationship("PlayerAchievement", back_populates="player")
