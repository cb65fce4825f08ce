"""
Attendance ledger — every SQL statement touching ``workers`` / ``attendance``.

The state machine and the report endpoints talk to the database only through
this object, so each query lives in one place and stays parameterized.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.models.attendance import (STATUS_ACTIVE,
                                                  STATUS_COMPLETED,
                                                  AttendanceSession)
from attendance_tracker.models.worker import ROLE_WORKER, Worker


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_bounds(
    start_date: date | None, end_date: date | None, tz: tzinfo
) -> tuple[datetime | None, datetime | None]:
    """Turn an inclusive local date range into a half-open UTC interval."""
    lower = upper = None
    if start_date is not None:
        try:
            lower = datetime.combine(start_date, time.min, tzinfo=tz).astimezone(timezone.utc)
        except OverflowError:
            # Local midnight on 0001-01-01 east of UTC precedes datetime.min
            lower = None
    if end_date is not None and end_date < date.max:
        upper = datetime.combine(
            end_date + timedelta(days=1), time.min, tzinfo=tz
        ).astimezone(timezone.utc)
    return lower, upper


class AttendanceLedger:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Transactions ────────────────────────────────────────────────
    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # ── Workers ─────────────────────────────────────────────────────
    async def get_worker(self, worker_id: str) -> Worker | None:
        result = await self.session.execute(select(Worker).where(Worker.id == worker_id))
        return result.scalar_one_or_none()

    async def find_worker_by_email(self, email: str) -> Worker | None:
        result = await self.session.execute(
            select(Worker).where(Worker.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def worker_exists(self, worker_id: str, email: str) -> bool:
        result = await self.session.execute(
            select(func.count(Worker.id)).where(
                or_(Worker.id == worker_id, Worker.email == email)
            )
        )
        return result.scalar_one() > 0

    async def list_workers(
        self, department: str | None = None, role: str | None = ROLE_WORKER
    ) -> list[Worker]:
        query = select(Worker).order_by(Worker.name)
        if role is not None:
            query = query.where(Worker.role == role)
        if department:
            query = query.where(Worker.department == department)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # ── Sessions: state machine side ────────────────────────────────
    async def find_open_session(self, worker_id: str) -> AttendanceSession | None:
        """Most recently opened session without a check-out, if any.

        More than one open row means the ledger was corrupted outside the
        state machine; the newest one wins.
        """
        result = await self.session.execute(
            select(AttendanceSession)
            .where(
                AttendanceSession.worker_id == worker_id,
                AttendanceSession.check_out_time.is_(None),
            )
            .order_by(AttendanceSession.check_in_time.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def open_session(self, worker_id: str, check_in_time: datetime) -> AttendanceSession:
        record = AttendanceSession(
            worker_id=worker_id,
            check_in_time=check_in_time,
            status=STATUS_ACTIVE,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def close_session(
        self, session_id: int, check_out_time: datetime, total_hours: Decimal
    ) -> bool:
        """Close one open session; ``False`` if it was already closed.

        The ``check_out_time IS NULL`` guard makes racing check-outs safe:
        only the first UPDATE matches the row.
        """
        result = await self.session.execute(
            update(AttendanceSession)
            .where(
                AttendanceSession.id == session_id,
                AttendanceSession.check_out_time.is_(None),
            )
            .values(
                check_out_time=check_out_time,
                total_hours=total_hours,
                status=STATUS_COMPLETED,
                updated_at=check_out_time,
            )
        )
        return result.rowcount == 1

    # ── Sessions: reporting side ────────────────────────────────────
    async def list_sessions(
        self,
        worker_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[tuple[AttendanceSession, Worker]]:
        """Sessions joined with their worker, newest first."""
        query = (
            select(AttendanceSession, Worker)
            .join(Worker, AttendanceSession.worker_id == Worker.id)
            .order_by(AttendanceSession.check_in_time.desc())
        )
        query = self._filter(query, worker_id, start, end)
        result = await self.session.execute(query)
        return [(att, worker) for att, worker in result.all()]

    async def worker_sessions(
        self,
        worker_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AttendanceSession]:
        query = select(AttendanceSession).order_by(AttendanceSession.check_in_time.asc())
        query = self._filter(query, worker_id, start, end)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def sessions_for_workers(self, worker_ids: list[str]) -> dict[str, list[AttendanceSession]]:
        """All sessions of several workers in one query, grouped by worker."""
        grouped: dict[str, list[AttendanceSession]] = {wid: [] for wid in worker_ids}
        if not worker_ids:
            return grouped
        result = await self.session.execute(
            select(AttendanceSession)
            .where(AttendanceSession.worker_id.in_(worker_ids))
            .order_by(AttendanceSession.check_in_time.asc())
        )
        for att in result.scalars().all():
            grouped[att.worker_id].append(att)
        return grouped

    async def latest_sessions(self, worker_ids: list[str]) -> dict[str, AttendanceSession]:
        """Newest session per worker (ids are assigned in check-in order)."""
        if not worker_ids:
            return {}
        newest = (
            select(func.max(AttendanceSession.id))
            .where(AttendanceSession.worker_id.in_(worker_ids))
            .group_by(AttendanceSession.worker_id)
        )
        result = await self.session.execute(
            select(AttendanceSession).where(AttendanceSession.id.in_(newest))
        )
        return {att.worker_id: att for att in result.scalars().all()}

    @staticmethod
    def _filter(query, worker_id, start, end):
        if worker_id is not None:
            query = query.where(AttendanceSession.worker_id == worker_id)
        if start is not None:
            query = query.where(AttendanceSession.check_in_time >= start)
        if end is not None:
            query = query.where(AttendanceSession.check_in_time < end)
        return query
