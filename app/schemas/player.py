from pydantic import BaseModel, Field
from typing import List, Optional


class PlayerCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, description="Unique email address")
    password: str = Field(..., min_length=1, description="Plain text password, hashed before storage")
    contactno: str = Field(..., max_length=30)
    fname: str = Field(..., max_length=50)
    lname: str = Field(..., max_length=50)
    clubname: str = Field(..., description="Name of the club the player joins")


class LoginRequest(BaseModel):
    email: str
    password: str


class PlayerLookup(BaseModel):
    playerid: int = Field(..., description="ID of the player")


class AchievementPost(BaseModel):
    achievementid: int
    playerid: int


class LadderEntry(BaseModel):
    playerid: int
    fname: str
    lname: str
    clubname: Optional[str] = None
    elo: int
    winstreak: int
    hotstreak: bool
    matchesplayed: int
    wins: int
    losses: int
    highestelo: int
    clubchamp: bool
    achieved: List[int] = []


class PlayerProfile(LadderEntry):
    email: str
    contactno: Optional[str] = None


class AchievementEntry(BaseModel):
    achievementid: str
    achievementname: str
    achievementdescription: str
