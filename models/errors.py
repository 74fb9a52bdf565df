"""Domain errors raised by the session backend and translated to HTTP at the routes."""

from __future__ import annotations


class BotError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(BotError):
    status_code = 401
    code = "UNAUTHORIZED"


class ValidationError(BotError):
    status_code = 400
    code = "BAD_REQUEST"


class NotFoundError(BotError):
    status_code = 404
    code = "NOT_FOUND"


class NotReadyError(BotError):
    """Raised when a send is attempted without an open transport session."""

    status_code = 503
    code = "BOT_NOT_READY"


class TransportError(BotError):
    """Raised when the messaging transport fails a pairing or send request."""

    status_code = 502
    code = "TRANSPORT_ERROR"
