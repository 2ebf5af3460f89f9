import logging
from datetime import date
from typing import List

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.core.exceptions import (
    ConflictError, LadderException, NotFoundError, TransactionFailure, ValidationError
)
from app.models.challenge import Challenge
from app.models.club import Club
from app.models.player import Player
from app.models.player_challenge import MatchOutcome, PlayerChallenge
from app.schemas.challenge import ActiveChallenge, MatchHistoryEntry
from app.services.club_service import club_service_obj

logger = logging.getLogger(__name__)


class ChallengeService:
    """
    Owns the challenge lifecycle:

        proposed (accepted=False) -> accepted -> scored

    Cancelling or declining deletes the challenge; scored and cancelled are terminal.
    Scoring itself lives in the result service.
    """

    def create_challenge(self, db: Session, club_name: str, match_date: date, match_time: str) -> int:
        """Insert a pending challenge and return the id the store assigned to it."""
        club_id = club_service_obj.resolve_club_id(db, club_name)

        challenge = Challenge(
            club_id=club_id,
            date=match_date,
            time=match_time,
            accepted=False,
            score=None
        )
        db.add(challenge)
        try:
            # The flush returns the new primary key from the insert itself
            db.flush()
            challenge_id = challenge.id
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create challenge at club {club_id}: {e}")
            raise TransactionFailure("Error creating challenge") from e

        logger.info(f"Challenge {challenge_id} created at club {club_id} for {match_date} {match_time}")
        return challenge_id

    def create_player_challenge(self, db: Session, challenge_id: int,
                                initiator_id: int, opponent_id: int) -> List[PlayerChallenge]:
        """Attach the initiator and the opponent to a challenge, both rows or neither."""
        if initiator_id == opponent_id:
            raise ValidationError("A player cannot challenge themselves",
                                  fields=["playerid", "opponentid"])

        try:
            challenge = db.query(Challenge).filter(
                Challenge.id == challenge_id
            ).with_for_update().first()
            if not challenge:
                raise NotFoundError(f"Challenge {challenge_id} not found")

            for player_id in (initiator_id, opponent_id):
                if not db.query(Player.id).filter(Player.id == player_id).scalar():
                    raise NotFoundError(f"Player {player_id} not found")

            existing = db.query(PlayerChallenge).filter(
                PlayerChallenge.challenge_id == challenge_id
            ).count()
            if existing:
                raise ConflictError(f"Challenge {challenge_id} already has players")

            rows = [
                PlayerChallenge(
                    challenge_id=challenge_id,
                    player_id=initiator_id,
                    did_initiate=True,
                    did_win=int(MatchOutcome.UNRESOLVED)
                ),
                PlayerChallenge(
                    challenge_id=challenge_id,
                    player_id=opponent_id,
                    did_initiate=False,
                    did_win=int(MatchOutcome.UNRESOLVED)
                ),
            ]
            db.add_all(rows)
            db.commit()
        except LadderException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to attach players to challenge {challenge_id}: {e}")
            raise TransactionFailure("Error creating challenge") from e

        logger.info(f"Player {initiator_id} challenged player {opponent_id} (challenge {challenge_id})")
        return rows

    def accept_challenge(self, db: Session, challenge_id: int) -> None:
        """Mark a challenge accepted. Accepting twice leaves it accepted."""
        try:
            matched = db.query(Challenge).filter(Challenge.id == challenge_id).update(
                {"accepted": True}, synchronize_session=False
            )
            if not matched:
                raise NotFoundError(f"Challenge {challenge_id} not found")

            db.commit()
        except LadderException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to accept challenge {challenge_id}: {e}")
            raise TransactionFailure(f"Error accepting challenge {challenge_id}") from e

        logger.info(f"Challenge {challenge_id} accepted")

    def cancel_challenge(self, db: Session, challenge_id: int) -> None:
        """Remove a pending challenge. Declining a challenge is the same operation."""
        try:
            challenge = db.query(Challenge.id, Challenge.score).filter(
                Challenge.id == challenge_id
            ).with_for_update().first()
            if not challenge:
                raise NotFoundError(f"Challenge {challenge_id} not found")
            if challenge.score is not None:
                raise ConflictError(f"Challenge {challenge_id} has already been scored")

            # Association rows first, they reference the challenge
            removed = db.query(PlayerChallenge).filter(
                PlayerChallenge.challenge_id == challenge_id
            ).delete(synchronize_session=False)

            deleted = db.query(Challenge).filter(
                Challenge.id == challenge_id
            ).delete(synchronize_session=False)
            if deleted != 1:
                raise TransactionFailure(f"Error cancelling challenge {challenge_id}")

            db.commit()
        except LadderException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to cancel challenge {challenge_id}: {e}")
            raise TransactionFailure(f"Error cancelling challenge {challenge_id}") from e

        logger.info(f"Challenge {challenge_id} cancelled ({removed} player rows removed)")

    def get_challenges(self, db: Session, player_id: int) -> List[ActiveChallenge]:
        """Unresolved challenges for a player, with the opponent and venue."""
        self._require_player(db, player_id)

        mine = aliased(PlayerChallenge)
        theirs = aliased(PlayerChallenge)
        opponent = aliased(Player)

        rows = db.query(
            mine.challenge_id,
            mine.did_initiate,
            opponent.id,
            opponent.first_name,
            opponent.last_name,
            opponent.contact_no,
            opponent.elo,
            Club.name,
            Challenge.date,
            Challenge.time,
            Challenge.accepted
        ).select_from(mine).join(
            Challenge, Challenge.id == mine.challenge_id
        ).join(
            Club, Club.id == Challenge.club_id
        ).join(
            theirs, and_(
                theirs.challenge_id == mine.challenge_id,
                theirs.player_id != mine.player_id
            )
        ).join(
            opponent, opponent.id == theirs.player_id
        ).filter(
            mine.player_id == player_id,
            mine.did_win == int(MatchOutcome.UNRESOLVED)
        ).order_by(Challenge.date, Challenge.time, Challenge.id).all()

        return [
            ActiveChallenge(
                challengeid=challenge_id,
                didinitiate=did_initiate,
                opponentid=opponent_id,
                fname=fname,
                lname=lname,
                contactno=contact_no,
                elo=elo,
                clubname=club_name,
                date=match_date,
                time=match_time,
                accepted=accepted
            )
            for (challenge_id, did_initiate, opponent_id, fname, lname, contact_no,
                 elo, club_name, match_date, match_time, accepted) in rows
        ]

    def get_match_history(self, db: Session, player_id: int) -> List[MatchHistoryEntry]:
        """Scored matches for a player, most recent first."""
        self._require_player(db, player_id)

        mine = aliased(PlayerChallenge)
        theirs = aliased(PlayerChallenge)
        opponent = aliased(Player)

        rows = db.query(
            mine.challenge_id,
            mine.did_win,
            opponent.id,
            opponent.first_name,
            opponent.last_name,
            Challenge.date,
            Challenge.score
        ).select_from(mine).join(
            Challenge, Challenge.id == mine.challenge_id
        ).join(
            theirs, and_(
                theirs.challenge_id == mine.challenge_id,
                theirs.player_id != mine.player_id
            )
        ).join(
            opponent, opponent.id == theirs.player_id
        ).filter(
            mine.player_id == player_id,
            mine.did_win != int(MatchOutcome.UNRESOLVED)
        ).order_by(Challenge.date.desc(), Challenge.id.desc()).all()

        return [
            MatchHistoryEntry(
                challengeid=challenge_id,
                didwin=did_win,
                opponentid=opponent_id,
                fname=fname,
                lname=lname,
                date=match_date,
                score=score
            )
            for challenge_id, did_win, opponent_id, fname, lname, match_date, score in rows
        ]

    def _require_player(self, db: Session, player_id: int) -> None:
        if not db.query(Player.id).filter(Player.id == player_id).scalar():
            raise NotFoundError(f"Player {player_id} not found")


challenge_service_obj = ChallengeService()
