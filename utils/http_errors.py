"""Translate domain errors into HTTP responses."""

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from models.errors import BotError, Unauthorized, ValidationError

LOGGER = logging.getLogger(__name__)


def to_http_exception(exc: BotError) -> HTTPException:
    """Return an HTTPException carrying the error code and message."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return HTTPException(
        status_code=exc.status_code,
        detail={"error": exc.code, "message": exc.message},
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer a missing or malformed request body with a 400 BAD_REQUEST error body."""
    LOGGER.debug("Rejected request body for %s: %s", request.url.path, exc.errors())
    error = to_http_exception(ValidationError("Request body is missing or malformed."))
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})
