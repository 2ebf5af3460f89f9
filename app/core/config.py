from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./tennisladder.db"
    )
    DEBUG: bool = os.getenv("DEBUG", "True") == "True"
    # Challenge dates arrive as epoch seconds and are pinned to this zone
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
    DB_LOCK_TIMEOUT: int = int(os.getenv("DB_LOCK_TIMEOUT", "15"))

    class Config:
        env_file = ".env"

settings = Settings()
