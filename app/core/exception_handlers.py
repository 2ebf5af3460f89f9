"""
Exception handlers for the Tennis Ladder API.

Every failure is rendered in the envelope the mobile client expects:
``{"error": true, "message": ..., "error_code": ...}``.
"""
import logging
from fastapi import Request, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import LadderException, ValidationError

logger = logging.getLogger(__name__)


def create_error_response(status_code: int, message: str, error_code: str, **extra) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "error": True,
        "message": message,
        "error_code": error_code,
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def ladder_exception_handler(request: Request, exc: LadderException) -> JSONResponse:
    """Handle every domain exception using the status and code carried by its class."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path}: {exc}")
    else:
        logger.info(f"{exc.error_code} on {request.url.path}: {exc}")

    if isinstance(exc, ValidationError) and exc.fields:
        return create_error_response(exc.status_code, str(exc), exc.error_code, fields=exc.fields)
    return create_error_response(exc.status_code, str(exc), exc.error_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI request validation errors with better formatting."""
    fields = [".".join(str(x) for x in error["loc"][1:]) for error in exc.errors()]
    return create_error_response(
        422,
        "Please enter all necessary fields",
        "VALIDATION_ERROR",
        fields=fields
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle generic HTTP exceptions."""
    return create_error_response(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    # Don't expose internal errors in production
    if settings.DEBUG:
        message = str(exc)
    else:
        message = "An unexpected error occurred"

    return create_error_response(500, message, "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(LadderException, ladder_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
