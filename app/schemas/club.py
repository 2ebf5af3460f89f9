from pydantic import BaseModel, Field


class ClubCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Unique club name")
    address: str = Field(..., max_length=255)
