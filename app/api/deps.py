"""
Dependency injection for API endpoints.
"""
import logging
from typing import Generator

from sqlalchemy.orm import Session

from app.core.database import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """
    One session per request, released when the request finishes.

    Work the request left uncommitted is rolled back before the connection
    goes back to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        logger.debug("Rolling back request session after error")
        db.rollback()
        raise
    finally:
        db.close()
