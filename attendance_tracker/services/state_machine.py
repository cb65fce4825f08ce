"""
Check-in / check-out lifecycle.

Each worker is either ``OUT`` (no open session) or ``IN`` (exactly one open
session).  The already-checked-in guard looks at *any* open session, never
at the calendar day: a worker who forgot to check out yesterday must check
out before checking in again.  Day boundaries only matter for reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError

from attendance_tracker.core.exceptions import (AlreadyCheckedInError,
                                                AuthorizationError,
                                                NotCheckedInError,
                                                NotFoundError,
                                                SessionDataError)
from attendance_tracker.models.worker import Worker
from attendance_tracker.services.ledger import AttendanceLedger, ensure_utc

logger = logging.getLogger(__name__)

STATE_IN = "IN"
STATE_OUT = "OUT"

_CENT = Decimal("0.01")


def compute_total_hours(check_in: datetime, check_out: datetime) -> float:
    """Elapsed hours between two timestamps; refuses negative durations."""
    seconds = (ensure_utc(check_out) - ensure_utc(check_in)).total_seconds()
    if seconds < 0:
        raise SessionDataError(
            f"Check-out {check_out.isoformat()} precedes check-in {check_in.isoformat()}"
        )
    return seconds / 3600


def to_hours_decimal(hours: float) -> Decimal:
    return Decimal(str(hours)).quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CheckInResult:
    session_id: int
    worker_id: str
    check_in_time: datetime


@dataclass(frozen=True)
class CheckOutResult:
    session_id: int
    worker_id: str
    check_in_time: datetime
    check_out_time: datetime
    total_hours: Decimal


@dataclass(frozen=True)
class AttendanceStatus:
    worker_id: str
    state: str
    session_id: int | None = None
    check_in_time: datetime | None = None

    @property
    def is_checked_in(self) -> bool:
        return self.state == STATE_IN


class AttendanceStateMachine:
    """Sole writer of attendance sessions."""

    def __init__(self, ledger: AttendanceLedger) -> None:
        self.ledger = ledger

    async def _require_worker(self, worker_id: str, *, active: bool = False) -> Worker:
        worker = await self.ledger.get_worker(worker_id)
        if worker is None:
            raise NotFoundError(f"Worker '{worker_id}' not found")
        if active and not worker.is_active:
            raise AuthorizationError(f"Worker '{worker_id}' is inactive")
        return worker

    async def check_in(self, worker_id: str, *, now: datetime | None = None) -> CheckInResult:
        now = ensure_utc(now or datetime.now(timezone.utc))
        await self._require_worker(worker_id, active=True)

        if await self.ledger.find_open_session(worker_id) is not None:
            logger.info("Check-in rejected for %s: already checked in", worker_id)
            raise AlreadyCheckedInError()

        try:
            record = await self.ledger.open_session(worker_id, now)
            await self.ledger.commit()
        except IntegrityError:
            # Lost a race against another check-in for the same worker
            await self.ledger.rollback()
            logger.info("Concurrent check-in for %s rejected by open-session index", worker_id)
            raise AlreadyCheckedInError()

        logger.info("Check-in %s for %s at %s", record.id, worker_id, now.isoformat())
        return CheckInResult(session_id=record.id, worker_id=worker_id, check_in_time=now)

    async def check_out(self, worker_id: str, *, now: datetime | None = None) -> CheckOutResult:
        now = ensure_utc(now or datetime.now(timezone.utc))
        await self._require_worker(worker_id)

        open_session = await self.ledger.find_open_session(worker_id)
        if open_session is None:
            logger.info("Check-out rejected for %s: not checked in", worker_id)
            raise NotCheckedInError()

        session_id = open_session.id
        check_in_time = ensure_utc(open_session.check_in_time)
        try:
            hours = compute_total_hours(check_in_time, now)
        except SessionDataError:
            logger.error(
                "Session %s of %s has check-in %s after check-out %s",
                session_id,
                worker_id,
                check_in_time.isoformat(),
                now.isoformat(),
            )
            raise
        total_hours = to_hours_decimal(hours)

        closed = await self.ledger.close_session(session_id, now, total_hours)
        if not closed:
            await self.ledger.rollback()
            logger.info("Session %s of %s was closed concurrently", session_id, worker_id)
            raise NotCheckedInError()
        await self.ledger.commit()

        logger.info("Check-out %s for %s: %s h", session_id, worker_id, total_hours)
        return CheckOutResult(
            session_id=session_id,
            worker_id=worker_id,
            check_in_time=check_in_time,
            check_out_time=now,
            total_hours=total_hours,
        )

    async def get_status(self, worker_id: str) -> AttendanceStatus:
        await self._require_worker(worker_id)
        open_session = await self.ledger.find_open_session(worker_id)
        if open_session is None:
            return AttendanceStatus(worker_id=worker_id, state=STATE_OUT)
        return AttendanceStatus(
            worker_id=worker_id,
            state=STATE_IN,
            session_id=open_session.id,
            check_in_time=ensure_utc(open_session.check_in_time),
        )
