"""
Single dispatch endpoint used by the mobile client.

Every call goes to ``/tennisapi?tennisapi=<operation>``. Mutating operations
read a form-encoded body, lookups read the query string, and every response
is a JSON object carrying ``error`` and ``message``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_db
from app.core.exceptions import UnknownOperation
from app.schemas.challenge import (
    ChallengeCreate, ChallengeLookup, PlayerChallengeCreate, ResultPost
)
from app.schemas.club import ClubCreate
from app.schemas.player import AchievementPost, LoginRequest, PlayerCreate, PlayerLookup
from app.services.achievement_service import achievement_service_obj
from app.services.challenge_service import challenge_service_obj
from app.services.club_service import club_service_obj
from app.services.player_service import player_service_obj
from app.services.result_service import result_service_obj
from app.services.validators import ParameterValidator

logger = logging.getLogger(__name__)

FORM = "form"
QUERY = "query"


@dataclass
class Operation:
    handler: Callable[[Session, Any], Dict[str, Any]]
    message: str
    params: Optional[Type[BaseModel]] = None
    source: str = QUERY


def login(db: Session, params: LoginRequest) -> dict:
    return {
        "player": player_service_obj.login(db, params.email, params.password),
        "achievements": achievement_service_obj.get_achievements(db),
    }


def create_player(db: Session, params: PlayerCreate) -> dict:
    player_service_obj.create_player(
        db, params.email, params.password, params.contactno,
        params.fname, params.lname, params.clubname
    )
    return {}


def get_clubs(db: Session, params) -> dict:
    return {"clubs": club_service_obj.get_clubs(db)}


def create_club(db: Session, params: ClubCreate) -> dict:
    club_service_obj.create_club(db, params.name, params.address)
    return {}


def get_player_data(db: Session, params: PlayerLookup) -> dict:
    return {"player": player_service_obj.get_player_data(db, params.playerid)}


def get_ladder_profile_data(db: Session, params) -> dict:
    return {"players": player_service_obj.get_ladder(db)}


def get_achievements(db: Session, params) -> dict:
    return {"achievements": achievement_service_obj.get_achievements(db)}


def post_achievement(db: Session, params: AchievementPost) -> dict:
    achievement_service_obj.post_achievement(db, params.achievementid, params.playerid)
    return {}


def get_challenges(db: Session, params: PlayerLookup) -> dict:
    return {"challenges": challenge_service_obj.get_challenges(db, params.playerid)}


def get_match_history(db: Session, params: PlayerLookup) -> dict:
    return {"challenges": challenge_service_obj.get_match_history(db, params.playerid)}


def create_challenge(db: Session, params: ChallengeCreate) -> dict:
    match_date = ParameterValidator().to_local_date(params.date)
    challenge_id = challenge_service_obj.create_challenge(
        db, params.clubname, match_date, params.time
    )
    return {"challengeid": challenge_id}


def create_player_challenge(db: Session, params: PlayerChallengeCreate) -> dict:
    challenge_service_obj.create_player_challenge(
        db, params.challengeid, params.playerid, params.opponentid
    )
    return {}


def accept_challenge(db: Session, params: ChallengeLookup) -> dict:
    challenge_service_obj.accept_challenge(db, params.challengeid)
    return {}


def cancel_challenge(db: Session, params: ChallengeLookup) -> dict:
    challenge_service_obj.cancel_challenge(db, params.challengeid)
    return {}


def post_result(db: Session, params: ResultPost) -> dict:
    result_service_obj.post_result(
        db,
        challenge_id=params.challengeid,
        winner_id=params.winnerid,
        loser_id=params.loserid,
        score=params.score,
        winner_elo=params.winnerelo,
        loser_elo=params.loserelo,
        new_highest_elo=params.newhighestelo,
        hot_streak=params.hotstreak
    )
    return {}


def delete_player(db: Session, params: PlayerLookup) -> dict:
    player_service_obj.delete_player(db, params.playerid)
    return {}


OPERATIONS: Dict[str, Operation] = {
    "login": Operation(login, "Login successful", LoginRequest, FORM),
    "create_player": Operation(create_player, "Player created", PlayerCreate, FORM),
    "get_clubs": Operation(get_clubs, "Club data retrieved"),
    "create_club": Operation(create_club, "Club created", ClubCreate, FORM),
    "get_player_data": Operation(get_player_data, "Player data retrieved", PlayerLookup),
    "get_ladder_profile_data": Operation(get_ladder_profile_data, "Ladder data retrieved"),
    "get_achievements": Operation(get_achievements, "Achievements retrieved"),
    "post_achievement": Operation(post_achievement, "Achievement posted", AchievementPost, FORM),
    "get_challenges": Operation(get_challenges, "Challenges retrieved", PlayerLookup),
    "get_match_history": Operation(get_match_history, "Match history retrieved", PlayerLookup),
    "create_challenge": Operation(create_challenge, "Challenge created", ChallengeCreate, FORM),
    "create_player_challenge": Operation(
        create_player_challenge, "Challenge created", PlayerChallengeCreate, FORM
    ),
    "accept_challenge": Operation(accept_challenge, "Challenge accepted", ChallengeLookup),
    "cancel_challenge": Operation(cancel_challenge, "Challenge cancelled", ChallengeLookup),
    "post_result": Operation(post_result, "Result submitted", ResultPost, FORM),
    "delete_player": Operation(delete_player, "Player deleted", PlayerLookup),
}

router = APIRouter(
    tags=["tennisapi"],
    responses={
        400: {"description": "Missing or invalid parameters"},
        404: {"description": "Club, player or challenge not found"},
        409: {"description": "Conflicting state"},
    }
)


@router.api_route("/tennisapi", methods=["GET", "POST"])
async def tennisapi(
        request: Request,
        operation_name: Optional[str] = Query(None, alias="tennisapi"),
        db: Session = Depends(get_db)
):
    """
    Dispatch a tennis ladder operation by name.

    Challenge lifecycle:
    - create_challenge -> create_player_challenge -> accept_challenge -> post_result
    - cancel_challenge removes a pending challenge (also used to decline)
    """
    if operation_name is None:
        raise UnknownOperation("Invalid API call")

    operation = OPERATIONS.get(operation_name)
    if operation is None:
        raise UnknownOperation("API functionality does not exist")

    params = None
    if operation.params is not None:
        if operation.source == FORM:
            raw = await request.form()
        else:
            raw = request.query_params
        params = ParameterValidator().parse(operation.params, raw)

    logger.debug(f"Dispatching {operation_name}")
    # Handlers block on the database and on password hashing
    payload = await run_in_threadpool(operation.handler, db, params)

    response = {"error": False, "message": operation.message}
    response.update(jsonable_encoder(payload))
    return response
