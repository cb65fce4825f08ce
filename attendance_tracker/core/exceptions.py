"""
Error taxonomy and global exception handlers.

Every error leaves the API as ``{"success": false, "error": ..., "message": ...}``
so the UI can branch on one shape.  Handlers never leak stack traces or
database internals to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class AttendanceError(Exception):
    """Base class for errors that map to a structured API response."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(AttendanceError):
    status_code = 400
    error = "Validation error"


class AuthenticationError(AttendanceError):
    status_code = 401
    error = "Authentication failed"


class AuthorizationError(AttendanceError):
    status_code = 403
    error = "Unauthorized"


class NotFoundError(AttendanceError):
    status_code = 404
    error = "Not found"


class ConflictError(AttendanceError):
    """Business-rule violation of the check-in / check-out lifecycle."""

    status_code = 400
    error = "Conflict"


class AlreadyCheckedInError(ConflictError):
    error = "Already checked in"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "You are already checked in")


class NotCheckedInError(ConflictError):
    error = "Not checked in"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "You are not currently checked in")


class DuplicateWorkerError(AttendanceError):
    status_code = 409
    error = "Duplicate worker"


class DataStoreError(AttendanceError):
    status_code = 500
    error = "Database error"


class SessionDataError(DataStoreError):
    """A stored session is inconsistent, e.g. check-out earlier than check-in."""

    error = "Inconsistent attendance data"


def _body(error: str, message: str) -> dict:
    return {"success": False, "error": error, "message": message}


# ── Handlers ────────────────────────────────────────────────────────
async def _attendance_error_handler(_request: Request, exc: AttendanceError) -> JSONResponse:
    if exc.status_code >= 500:
        # Internal detail stays in the log
        logger.error("%s: %s", type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(exc.error, "An unexpected error occurred"),
        )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(exc.error, exc.message),
        headers=headers,
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_body("Request failed", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=_body(ValidationError.error, "; ".join(problems) or "Invalid request"),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content=_body("Conflict", "Database constraint violation"),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_body(DataStoreError.error, "An unexpected error occurred"),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_body("Internal server error", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AttendanceError, _attendance_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
