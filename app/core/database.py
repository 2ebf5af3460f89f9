from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine, enforcing foreign keys and a busy timeout on SQLite."""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": settings.DB_LOCK_TIMEOUT}

    new_engine = create_engine(url, connect_args=connect_args, echo=echo)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    return new_engine


engine = build_engine(SQLALCHEMY_DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
