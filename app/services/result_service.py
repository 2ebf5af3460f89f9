"""
Posting match results.

A result closes a challenge and rewrites the rating state of both players in
a single transaction:

    1. challenge score
    2. winner's participant row -> WON
    3. loser's participant row  -> LOST
    4. winner's rating row (elo, streaks, counters, highest elo, champion flag)
    5. loser's rating row (elo, streaks reset, counters)

Either all five land or none do. Rows are locked challenge first, then players
in ascending id order, and the score is written only while still empty, so two
posts racing for the same challenge apply the ratings once.
"""
import logging
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ConflictError, LadderException, NotFoundError, TransactionFailure, ValidationError
)
from app.models.challenge import Challenge
from app.models.player import Player
from app.models.player_challenge import MatchOutcome, PlayerChallenge
from app.services.rating_ledger import RatingLedger, rating_ledger

logger = logging.getLogger(__name__)


class ResultService:

    def __init__(self, ledger: RatingLedger = rating_ledger):
        self.ledger = ledger

    def post_result(self, db: Session, challenge_id: int, winner_id: int, loser_id: int,
                    score: str, winner_elo: int, loser_elo: int,
                    new_highest_elo: int, hot_streak: bool) -> None:
        if winner_id == loser_id:
            raise ValidationError("Winner and loser must be different players",
                                  fields=["winnerid", "loserid"])

        try:
            self._check_challenge(db, challenge_id, winner_id, loser_id)
            self._set_score(db, challenge_id, score)

            players = self._lock_players(db, winner_id, loser_id)
            winner, loser = players[winner_id], players[loser_id]
            loser_club_id = loser.club_id

            # Decided on the ratings as they stood before this result
            club_champ = self._winner_takes_title(db, winner, loser_id, winner_elo, loser_elo)

            self._resolve_participant(db, challenge_id, winner_id, MatchOutcome.WON)
            self._resolve_participant(db, challenge_id, loser_id, MatchOutcome.LOST)

            self._apply_win(db, winner, winner_elo, new_highest_elo, hot_streak, club_champ)
            self._apply_loss(db, loser, loser_elo)

            if loser_club_id is not None:
                self.ledger.hand_over_title(db, loser_club_id, loser_id)

            db.commit()
        except LadderException:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Result for challenge {challenge_id} rolled back: {e}")
            raise TransactionFailure("Error submitting result") from e

        logger.info(
            f"Challenge {challenge_id} scored {score}: "
            f"winner {winner_id} -> {winner_elo}{' (club champion)' if club_champ else ''}, "
            f"loser {loser_id} -> {loser_elo}"
        )

    def _check_challenge(self, db: Session, challenge_id: int, winner_id: int, loser_id: int) -> None:
        challenge = db.query(Challenge.id, Challenge.accepted, Challenge.score).filter(
            Challenge.id == challenge_id
        ).with_for_update().first()

        if not challenge:
            raise NotFoundError(f"Challenge {challenge_id} not found")
        if challenge.score is not None:
            raise ConflictError(f"Challenge {challenge_id} has already been scored")
        if not challenge.accepted:
            raise ConflictError(f"Challenge {challenge_id} has not been accepted")

        participants = {
            player_id for player_id, in db.query(PlayerChallenge.player_id).filter(
                PlayerChallenge.challenge_id == challenge_id
            ).all()
        }
        for player_id in (winner_id, loser_id):
            if player_id not in participants:
                raise NotFoundError(f"Player {player_id} is not part of challenge {challenge_id}")

    def _set_score(self, db: Session, challenge_id: int, score: str) -> None:
        updated = db.query(Challenge).filter(
            Challenge.id == challenge_id,
            Challenge.score.is_(None)
        ).update({"score": score}, synchronize_session=False)

        if updated != 1:
            logger.warning(f"Challenge {challenge_id} was scored by a concurrent request")
            raise ConflictError(f"Challenge {challenge_id} has already been scored")

    def _lock_players(self, db: Session, winner_id: int, loser_id: int) -> Dict[int, Player]:
        rows = db.query(Player).filter(
            Player.id.in_([winner_id, loser_id])
        ).order_by(Player.id).with_for_update().populate_existing().all()

        players = {player.id: player for player in rows}
        for player_id in (winner_id, loser_id):
            if player_id not in players:
                raise NotFoundError(f"Player {player_id} not found")
        return players

    def _winner_takes_title(self, db: Session, winner: Player, loser_id: int,
                            winner_elo: int, loser_elo: int) -> bool:
        """
        The winner becomes club champion when no club-mate is rated above them.

        A club with no other members crowns the winner outright. When the title
        moves, every other champion flag in the club is cleared.
        """
        if winner.club_id is None:
            return False

        rival_elo = self.ledger.club_max_elo(
            db, winner.id, winner.club_id, overrides={loser_id: loser_elo}
        )
        if rival_elo is not None and winner_elo < rival_elo:
            return False

        self.ledger.clear_champions(db, winner.club_id, except_player_id=winner.id)
        return True

    def _resolve_participant(self, db: Session, challenge_id: int, player_id: int,
                             outcome: MatchOutcome) -> None:
        updated = db.query(PlayerChallenge).filter(
            PlayerChallenge.challenge_id == challenge_id,
            PlayerChallenge.player_id == player_id,
            PlayerChallenge.did_win == int(MatchOutcome.UNRESOLVED)
        ).update({"did_win": int(outcome)}, synchronize_session=False)

        if updated != 1:
            raise TransactionFailure(
                f"Could not record {outcome.name.lower()} for player {player_id} "
                f"in challenge {challenge_id}"
            )

    def _apply_win(self, db: Session, winner: Player, winner_elo: int, new_highest_elo: int,
                   hot_streak: bool, club_champ: bool) -> None:
        updated = db.query(Player).filter(Player.id == winner.id).update({
            Player.elo: winner_elo,
            Player.win_streak: Player.win_streak + 1,
            Player.hot_streak: bool(hot_streak),
            Player.matches_played: Player.matches_played + 1,
            Player.wins: Player.wins + 1,
            Player.highest_elo: max(new_highest_elo, winner_elo, winner.highest_elo),
            Player.club_champ: club_champ,
        }, synchronize_session=False)

        if updated != 1:
            raise TransactionFailure(f"Could not update ratings for player {winner.id}")

    def _apply_loss(self, db: Session, loser: Player, loser_elo: int) -> None:
        updated = db.query(Player).filter(Player.id == loser.id).update({
            Player.elo: loser_elo,
            Player.win_streak: 0,
            Player.hot_streak: False,
            Player.matches_played: Player.matches_played + 1,
            Player.losses: Player.losses + 1,
            Player.highest_elo: max(loser.highest_elo, loser_elo),
        }, synchronize_session=False)

        if updated != 1:
            raise TransactionFailure(f"Could not update ratings for player {loser.id}")


result_service_obj = ResultService()
