import itertools
import os
import tempfile
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api.deps import get_db
from app.core.database import build_engine
from app.core.ladder_config import DEFAULT_ELO
from app.core.startup import initialize_database
from app.models.achievement import PlayerAchievement
from app.models.challenge import Challenge
from app.models.club import Club
from app.models.player import Player
from app.models.player_challenge import PlayerChallenge
from app.services.auth_service import hash_password
from main import app

PASSWORD = "secret-password"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(scope="session")
def test_db():
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    engine = build_engine(f"sqlite:///{db_path}")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    initialize_database(engine)
    yield TestingSessionLocal
    engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def db_session(test_db):
    session = test_db()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _wipe(session):
    session.rollback()
    for model in [PlayerAchievement, PlayerChallenge, Challenge, Player, Club]:
        session.query(model).delete()
    session.commit()


@pytest.fixture(autouse=True)
def db_cleanup(db_session):
    _wipe(db_session)
    yield
    _wipe(db_session)


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_club(db_session):
    counter = itertools.count(1)

    def _make(name=None, address="1 Court Lane"):
        club = Club(name=name or f"Club {next(counter)}", address=address)
        db_session.add(club)
        db_session.commit()
        db_session.refresh(club)
        return club

    return _make


@pytest.fixture
def make_player(db_session):
    counter = itertools.count(1)

    def _make(club=None, elo=DEFAULT_ELO, club_champ=False, **fields):
        n = next(counter)
        player = Player(
            email=fields.pop("email", f"player{n}@example.com"),
            password_hash=PASSWORD_HASH,
            contact_no="0400 000 000",
            first_name=fields.pop("first_name", f"Player{n}"),
            last_name=fields.pop("last_name", "Tester"),
            club_id=club.id if club else None,
            elo=elo,
            highest_elo=fields.pop("highest_elo", elo),
            club_champ=club_champ,
            **fields
        )
        db_session.add(player)
        db_session.commit()
        db_session.refresh(player)
        return player

    return _make


@pytest.fixture
def make_challenge(db_session):
    """Create a challenge between two players, accepted unless told otherwise."""

    def _make(initiator, opponent, club, accepted=True, match_date=date(2024, 3, 9)):
        challenge = Challenge(club_id=club.id, date=match_date, time="18:30", accepted=accepted)
        db_session.add(challenge)
        db_session.flush()
        db_session.add_all([
            PlayerChallenge(challenge_id=challenge.id, player_id=initiator.id,
                            did_initiate=True, did_win=-1),
            PlayerChallenge(challenge_id=challenge.id, player_id=opponent.id,
                            did_initiate=False, did_win=-1),
        ])
        db_session.commit()
        return challenge.id

    return _make


@pytest.fixture
def reload(db_session):
    """Fetch a row as the database currently holds it."""

    def _reload(model, *ident):
        db_session.expire_all()
        return db_session.get(model, ident[0] if len(ident) == 1 else ident)

    return _reload
