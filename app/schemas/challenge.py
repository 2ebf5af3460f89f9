from pydantic import BaseModel, Field
from typing import Optional
import datetime


class ChallengeCreate(BaseModel):
    clubname: str = Field(..., description="Club hosting the match")
    date: int = Field(..., description="Match date as epoch seconds")
    time: str = Field(..., min_length=1, max_length=20, description="Match time, e.g. 18:30")


class PlayerChallengeCreate(BaseModel):
    challengeid: int
    playerid: int = Field(..., description="ID of the player issuing the challenge")
    opponentid: int = Field(..., description="ID of the challenged player")


class ChallengeLookup(BaseModel):
    challengeid: int


class ResultPost(BaseModel):
    challengeid: int
    winnerid: int
    loserid: int
    score: str = Field(..., min_length=1, max_length=100)
    winnerelo: int = Field(..., description="Winner's post-match elo")
    loserelo: int = Field(..., description="Loser's post-match elo")
    newhighestelo: int = Field(..., description="Winner's highest elo after this match")
    hotstreak: bool = Field(..., description="Winner's hot streak flag after this match")


class ActiveChallenge(BaseModel):
    challengeid: int
    didinitiate: bool
    opponentid: int
    fname: str
    lname: str
    contactno: Optional[str] = None
    elo: int
    clubname: str
    date: datetime.date
    time: str
    accepted: bool


class MatchHistoryEntry(BaseModel):
    challengeid: int
    didwin: int
    opponentid: int
    fname: str
    lname: str
    date: datetime.date
    score: Optional[str] = None
