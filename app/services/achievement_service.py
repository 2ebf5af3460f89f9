import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.achievement import Achievement, PlayerAchievement
from app.models.player import Player
from app.schemas.player import AchievementEntry

logger = logging.getLogger(__name__)


class AchievementService:

    def get_achievements(self, db: Session) -> List[AchievementEntry]:
        return [
            AchievementEntry(
                achievementid=str(achievement.id),
                achievementname=achievement.name,
                achievementdescription=achievement.description
            )
            for achievement in db.query(Achievement).order_by(Achievement.id).all()
        ]

    def post_achievement(self, db: Session, achievement_id: int, player_id: int) -> PlayerAchievement:
        """Record that a player unlocked an achievement."""
        if not db.query(Achievement.id).filter(Achievement.id == achievement_id).scalar():
            raise NotFoundError(f"Achievement {achievement_id} not found")
        if not db.query(Player.id).filter(Player.id == player_id).scalar():
            raise NotFoundError(f"Player {player_id} not found")

        owned = PlayerAchievement(achievement_id=achievement_id, player_id=player_id)
        db.add(owned)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(
                f"Player {player_id} already has achievement {achievement_id}"
            ) from e

        logger.info(f"Player {player_id} unlocked achievement {achievement_id}")
        return owned


achievement_service_obj = AchievementService()
