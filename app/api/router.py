"""
Router registration for the Tennis Ladder API.
"""
from fastapi import FastAPI

from app.api import tennisapi


def include_routers(app: FastAPI) -> None:
    """Include all API routers with the FastAPI application."""
    app.include_router(tennisapi.router, prefix="/api/v1", tags=["tennisapi"])
