"""
Database migration script to set up the tennis ladder schema.

Usage:
    python migrate.py
    python migrate.py "Riverside=12 River Rd" "Hillcrest=3 Summit Ave"
"""
import os
import sys
from typing import Iterable, Tuple

from dotenv import load_dotenv
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.database import build_engine
from app.core.startup import initialize_database
from app.models.club import Club

# Load environment variables
load_dotenv()

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./tennisladder.db"
)


def parse_club(argument: str) -> Tuple[str, str]:
    """Split a ``name=address`` argument."""
    name, _, address = argument.partition("=")
    if not name.strip():
        raise ValueError(f"Club argument '{argument}' has no name")
    return name.strip(), address.strip()


def run_migrations(database_url: str = DATABASE_URL, clubs: Iterable[Tuple[str, str]] = ()) -> list:
    """Create tables, seed achievements and add any missing clubs. Returns the table names."""
    engine = build_engine(database_url)
    try:
        initialize_database(engine)

        with Session(engine) as db:
            existing = {name for name, in db.query(Club.name).all()}
            for name, address in clubs:
                if name not in existing:
                    db.add(Club(name=name, address=address))
                    existing.add(name)
            db.commit()

        return sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()


if __name__ == "__main__":
    print("Starting database migration...")

    tables = run_migrations(clubs=[parse_club(arg) for arg in sys.argv[1:]])

    print(f"Tables: {', '.join(tables)}")
    print("Migration complete!")
