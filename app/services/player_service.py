import logging
from collections import defaultdict
from typing import Dict, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AuthenticationFailed, ConflictError, LadderException, NotFoundError, TransactionFailure
)
from app.models.achievement import PlayerAchievement
from app.models.challenge import Challenge
from app.models.club import Club
from app.models.player import Player
from app.models.player_challenge import MatchOutcome, PlayerChallenge
from app.schemas.player import LadderEntry, PlayerProfile
from app.services.auth_service import hash_password, verify_password
from app.services.club_service import club_service_obj

logger = logging.getLogger(__name__)


class PlayerService:

    def create_player(self, db: Session, email: str, password: str, contact_no: str,
                      first_name: str, last_name: str, club_name: str) -> Player:
        """Sign up a new player. Emails are unique."""
        club_id = club_service_obj.resolve_club_id(db, club_name)

        player = Player(
            email=email,
            password_hash=hash_password(password),
            contact_no=contact_no,
            first_name=first_name,
            last_name=last_name,
            club_id=club_id
        )
        db.add(player)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Signup rejected, email '{email}' already registered")
            raise ConflictError("Email is already in use") from e
        db.refresh(player)

        logger.info(f"Created player {player.id} in club {club_id}")
        return player

    def login(self, db: Session, email: str, password: str) -> PlayerProfile:
        """Check credentials and return the player's profile."""
        player = db.query(Player).filter(Player.email == email).first()
        if not player or not verify_password(password, player.password_hash):
            raise AuthenticationFailed("Invalid username or password")

        logger.info(f"Player {player.id} logged in")
        return self.get_player_data(db, player.id)

    def get_player_data(self, db: Session, player_id: int) -> PlayerProfile:
        row = db.query(Player, Club.name).outerjoin(
            Club, Player.club_id == Club.id
        ).filter(Player.id == player_id).first()
        if not row:
            raise NotFoundError(f"Player {player_id} not found")

        player, club_name = row
        achieved = self._achievements_by_player(db, [player.id])
        return PlayerProfile(
            email=player.email,
            contactno=player.contact_no,
            **self._ladder_fields(player, club_name, achieved[player.id])
        )

    def get_ladder(self, db: Session) -> List[LadderEntry]:
        """All players, highest elo first, with their unlocked achievements."""
        rows = db.query(Player, Club.name).outerjoin(
            Club, Player.club_id == Club.id
        ).order_by(Player.elo.desc(), Player.id.asc()).all()

        achieved = self._achievements_by_player(db, [player.id for player, _ in rows])
        return [
            LadderEntry(**self._ladder_fields(player, club_name, achieved[player.id]))
            for player, club_name in rows
        ]

    def delete_player(self, db: Session, player_id: int) -> None:
        """
        Delete a player together with their achievements and unresolved challenges.

        Players with scored matches are kept so their opponents' history stays intact.
        """
        try:
            player = db.query(Player.id).filter(Player.id == player_id).with_for_update().first()
            if not player:
                raise NotFoundError(f"Player {player_id} not found")

            history = db.query(PlayerChallenge).filter(
                PlayerChallenge.player_id == player_id,
                PlayerChallenge.did_win != int(MatchOutcome.UNRESOLVED)
            ).count()
            if history:
                raise ConflictError(f"Player {player_id} has match history and cannot be deleted")

            pending_ids = [
                challenge_id for challenge_id, in db.query(PlayerChallenge.challenge_id).filter(
                    PlayerChallenge.player_id == player_id
                ).all()
            ]

            if pending_ids:
                db.query(PlayerChallenge).filter(
                    PlayerChallenge.challenge_id.in_(pending_ids)
                ).delete(synchronize_session=False)
                db.query(Challenge).filter(
                    Challenge.id.in_(pending_ids)
                ).delete(synchronize_session=False)

            db.query(PlayerAchievement).filter(
                PlayerAchievement.player_id == player_id
            ).delete(synchronize_session=False)
            db.query(Player).filter(Player.id == player_id).delete(synchronize_session=False)
            db.commit()
        except LadderException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete player {player_id}: {e}")
            raise TransactionFailure(f"Error deleting player {player_id}") from e

        logger.info(f"Deleted player {player_id} and {len(pending_ids)} pending challenges")

    def _achievements_by_player(self, db: Session, player_ids: List[int]) -> Dict[int, List[int]]:
        achieved = defaultdict(list)
        if not player_ids:
            return achieved

        rows = db.query(PlayerAchievement.player_id, PlayerAchievement.achievement_id).filter(
            PlayerAchievement.player_id.in_(player_ids)
        ).order_by(PlayerAchievement.achievement_id).all()
        for player_id, achievement_id in rows:
            achieved[player_id].append(achievement_id)
        return achieved

    def _ladder_fields(self, player: Player, club_name: str, achieved: List[int]) -> dict:
        return {
            "playerid": player.id,
            "fname": player.first_name,
            "lname": player.last_name,
            "clubname": club_name,
            "elo": player.elo,
            "winstreak": player.win_streak,
            "hotstreak": player.hot_streak,
            "matchesplayed": player.matches_played,
            "wins": player.wins,
            "losses": player.losses,
            "highestelo": player.highest_elo,
            "clubchamp": player.club_champ,
            "achieved": achieved,
        }


player_service_obj = PlayerService()
