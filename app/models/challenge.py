from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    club_id = Column(Integer, ForeignKey("clubs.id"), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(20), nullable=False)
    accepted = Column(Boolean, default=False, nullable=False)
    score = Column(String(100))  # null until a result is posted
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    club = relationship("Club", back_populates="challenges")
    player_challenges = relationship("PlayerChallenge", back_populates="challenge")

    # Never hand out the id of a cancelled challenge again
    __table_args__ = {"sqlite_autoincrement": True}
