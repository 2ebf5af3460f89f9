import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.club import Club

logger = logging.getLogger(__name__)


class ClubService:

    def resolve_club_id(self, db: Session, club_name: str) -> int:
        """Translate the human-facing club name into its id."""
        club_id = db.query(Club.id).filter(Club.name == club_name).scalar()
        if club_id is None:
            raise NotFoundError(f"Club '{club_name}' not found")
        return club_id

    def get_clubs(self, db: Session) -> List[str]:
        return [name for name, in db.query(Club.name).order_by(Club.name).all()]

    def create_club(self, db: Session, name: str, address: str) -> Club:
        club = Club(name=name, address=address)
        db.add(club)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"Club '{name}' already exists") from e
        db.refresh(club)

        logger.info(f"Created club {club.id} '{name}'")
        return club


club_service_obj = ClubService()
