"""
Application startup and shutdown logic for the Tennis Ladder API.
"""
import logging
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.database import engine, Base
from app.core.ladder_config import DEFAULT_ACHIEVEMENTS
from app.models import player, club, challenge, player_challenge  # noqa: F401
from app.models.achievement import Achievement

logger = logging.getLogger(__name__)


def seed_achievements(db: Session) -> int:
    """Insert any default achievement that is not yet in the table."""
    existing = {name for name, in db.query(Achievement.name).all()}
    added = 0
    for name, description in DEFAULT_ACHIEVEMENTS:
        if name not in existing:
            db.add(Achievement(name=name, description=description))
            added += 1
    db.commit()
    if added:
        logger.info(f"Seeded {added} achievements")
    return added


def initialize_database(bind: Engine = engine) -> None:
    """Initialize database tables, seed reference data and warm up connection pool."""
    try:
        # Create database tables
        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created/verified")

        with Session(bind) as db:
            seed_achievements(db)

        # Warm up the connection pool
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection pool initialized")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def shutdown_database(bind: Engine = engine) -> None:
    """Clean up database connections."""
    try:
        bind.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during database shutdown: {e}")
        # Don't re-raise during shutdown
