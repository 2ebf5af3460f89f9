"""
Club-champion bookkeeping over the players table.

Champion flags are always set and cleared by player identity. Two club-mates
can share an elo value, so the elo itself never identifies a champion.
"""
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.models.player import Player

logger = logging.getLogger(__name__)


class RatingLedger:
    """Reads and maintains the one-champion-per-club invariant."""

    def club_max_elo(self, db: Session, exclude_player_id: int, club_id: Optional[int],
                     overrides: Optional[Dict[int, int]] = None) -> Optional[int]:
        """
        Highest elo among the members of a club other than the excluded player.

        Returns None when the club has no other members. ``overrides`` maps
        player ids to the elo they will hold once the current transaction
        commits, so a club-mate whose rating is being rewritten is compared
        at its new value.
        """
        if club_id is None:
            return None

        overrides = overrides or {}
        rows = db.query(Player.id, Player.elo).filter(
            Player.club_id == club_id,
            Player.id != exclude_player_id
        ).all()

        if not rows:
            return None
        return max(overrides.get(player_id, elo) for player_id, elo in rows)

    def club_leader(self, db: Session, club_id: int,
                    exclude_player_id: Optional[int] = None) -> Optional[Player]:
        """Highest rated club member, lowest player id first on a tie."""
        query = db.query(Player).populate_existing().filter(Player.club_id == club_id)
        if exclude_player_id is not None:
            query = query.filter(Player.id != exclude_player_id)
        return query.order_by(Player.elo.desc(), Player.id.asc()).first()

    def current_champion(self, db: Session, club_id: int) -> Optional[Player]:
        return db.query(Player).populate_existing().filter(
            Player.club_id == club_id,
            Player.club_champ.is_(True)
        ).order_by(Player.id.asc()).first()

    def clear_champion(self, db: Session, club_id: int, player_id: int) -> bool:
        """Clear the champion flag of one club member. Returns True if a flag was cleared."""
        cleared = db.query(Player).filter(
            Player.id == player_id,
            Player.club_id == club_id,
            Player.club_champ.is_(True)
        ).update({"club_champ": False}, synchronize_session=False)

        if cleared:
            logger.info(f"Player {player_id} is no longer champion of club {club_id}")
        return bool(cleared)

    def clear_champions(self, db: Session, club_id: int, except_player_id: int) -> int:
        """Clear every champion flag in the club except the given player's."""
        champions = db.query(Player.id).filter(
            Player.club_id == club_id,
            Player.club_champ.is_(True),
            Player.id != except_player_id
        ).all()

        return sum(1 for player_id, in champions if self.clear_champion(db, club_id, player_id))

    def crown(self, db: Session, player_id: int) -> None:
        db.query(Player).filter(Player.id == player_id).update(
            {"club_champ": True}, synchronize_session=False
        )
        logger.info(f"Player {player_id} crowned club champion")

    def hand_over_title(self, db: Session, club_id: int, holder_id: int) -> Optional[int]:
        """
        Pass the title on when its holder is no longer the club's top rating.

        Called after the holder's rating dropped. If another member now has a
        strictly higher elo, the highest such member becomes champion.
        Returns the new champion's id, or None when the title stays put.
        """
        holder = db.query(Player).populate_existing().filter(Player.id == holder_id).first()
        if holder is None or not holder.club_champ:
            return None

        leader = self.club_leader(db, club_id, exclude_player_id=holder_id)
        if leader is None or leader.elo <= holder.elo:
            return None

        self.clear_champion(db, club_id, holder_id)
        self.crown(db, leader.id)
        return leader.id


rating_ledger = RatingLedger()
