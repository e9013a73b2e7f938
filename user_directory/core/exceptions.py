"""
Error taxonomy for the user directory and the global exception handlers
that turn it into ``{"message": ...}`` JSON responses.

Every domain error carries an explicit :class:`ErrorKind`; the HTTP
status is a pure function of that kind.  Errors raised without a kind
fall back to sniffing the message text, which is how older callers
classified failures.
"""

from __future__ import annotations

import enum
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AUTH: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
}


def status_for_kind(kind: ErrorKind) -> int:
    return _STATUS_BY_KIND[kind]


def status_from_message(message: str) -> int:
    """Legacy classification by wording, used only for untagged errors."""
    text = message.lower()
    if "not found" in text:
        return 404
    if "don't have permission" in text:
        return 403
    return 400


# ── Domain errors ───────────────────────────────────────────────────
class ApiError(Exception):
    """Base error that the HTTP boundary knows how to render."""

    kind: ErrorKind | None = None
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None, kind: ErrorKind | None = None) -> None:
        self.message = message or self.default_message
        if kind is not None:
            self.kind = kind
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        if self.kind is None:
            return status_from_message(self.message)
        return status_for_kind(self.kind)


class RequiredFieldsError(ApiError):
    kind = ErrorKind.VALIDATION
    default_message = "All fields are required"


class EmailAlreadyExists(ApiError):
    kind = ErrorKind.CONFLICT
    default_message = "Email already exists"


class UserNotFound(ApiError):
    kind = ErrorKind.NOT_FOUND
    default_message = "User not found"


class InvalidCredentials(ApiError):
    kind = ErrorKind.AUTH
    default_message = "User or password incorrect"


class NotAuthenticated(ApiError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Permission denied"


class InvalidToken(ApiError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Invalid token"


class TokenExpired(InvalidToken):
    default_message = "Token expired"


class PermissionDenied(ApiError):
    kind = ErrorKind.FORBIDDEN
    default_message = "You don't have permission"


# ── Handlers ────────────────────────────────────────────────────────
async def _api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"message": f"Rate limit exceeded: {exc.detail}"},
    )


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=400,
        content={"message": "Database constraint violation"},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal database error"},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
