from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from app.core.database import Base


class Achievement(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(255), nullable=False)

    player_achievements = relationship("PlayerAchievement", back_populates="achievement")


class PlayerAchievement(Base):
    __tablename__ = "player_achievements"

    achievement_id = Column(Integer, ForeignKey("achievements.id"), primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id"), primary_key=True, index=True)

    achievement = relationship("Achievement", back_populates="player_achievements")
    player = relationship("Player", back_populates="player_achievements")
