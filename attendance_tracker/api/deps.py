"""
FastAPI dependencies — auth guards, database session and service wiring.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.config import settings
from attendance_tracker.core.exceptions import (AuthenticationError,
                                                AuthorizationError)
from attendance_tracker.core.security import decode_access_token
from attendance_tracker.models.worker import Worker
from attendance_tracker.services.ledger import AttendanceLedger
from attendance_tracker.services.state_machine import AttendanceStateMachine

# auto_error=False so a missing header becomes our own AuthenticationError
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.session() as session:
        yield session


def get_ledger(db: AsyncSession = Depends(get_db)) -> AttendanceLedger:
    return AttendanceLedger(db)


def get_state_machine(
    ledger: AttendanceLedger = Depends(get_ledger),
) -> AttendanceStateMachine:
    return AttendanceStateMachine(ledger)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_worker(
    token: Optional[str] = Depends(oauth2_scheme),
    ledger: AttendanceLedger = Depends(get_ledger),
) -> Worker:
    """Decode the bearer token and load the caller."""
    if not token:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    worker_id: str | None = payload.get("sub")
    if worker_id is None:
        raise AuthenticationError("Invalid or expired token")

    worker = await ledger.get_worker(worker_id)
    if worker is None:
        raise AuthenticationError("Invalid or expired token")
    return worker


async def get_current_active_worker(
    current: Worker = Depends(get_current_worker),
) -> Worker:
    """Reject inactive accounts."""
    if not current.is_active:
        raise AuthorizationError("Worker account is inactive")
    return current


async def require_admin(
    current: Worker = Depends(get_current_active_worker),
) -> Worker:
    """Only allow admin role to proceed."""
    if not current.is_admin:
        raise AuthorizationError("Admin privileges required")
    return current


def ensure_self_or_admin(caller: Worker, worker_id: str) -> None:
    if caller.id != worker_id and not caller.is_admin:
        raise AuthorizationError("You may only access your own attendance")
