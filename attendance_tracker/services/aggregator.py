"""
Time aggregation over attendance sessions.

Everything here is pure: callers fetch sessions from the ledger and pass
them in.  Hours are summed as ``Decimal`` so rolling days into months into
years gives exactly the same totals as summing the sessions directly.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from typing import Protocol

from attendance_tracker.services.ledger import ensure_utc
from attendance_tracker.services.state_machine import (compute_total_hours,
                                                       to_hours_decimal)

ZERO = Decimal("0.00")


class SessionLike(Protocol):
    check_in_time: datetime
    check_out_time: datetime | None
    total_hours: Decimal | None


@dataclass(frozen=True)
class DailyTotal:
    date: date
    total_hours: Decimal


@dataclass(frozen=True)
class MonthlyTotal:
    year: int
    month: int
    total_hours: Decimal


@dataclass(frozen=True)
class YearlyTotal:
    year: int
    total_hours: Decimal


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int = 0
    completed_days: int = 0
    first_check_in: datetime | None = None
    last_check_out: datetime | None = None
    total_hours: Decimal = ZERO


@dataclass(frozen=True)
class DetailedReport:
    daily: list[DailyTotal] = field(default_factory=list)
    monthly: list[MonthlyTotal] = field(default_factory=list)
    yearly: list[YearlyTotal] = field(default_factory=list)


def session_hours(session: SessionLike) -> Decimal:
    """Hours credited to one completed session."""
    if session.total_hours is not None:
        return Decimal(str(session.total_hours)).quantize(ZERO)
    if session.check_out_time is None:
        return ZERO
    return to_hours_decimal(compute_total_hours(session.check_in_time, session.check_out_time))


def _completed(sessions: Iterable[SessionLike]) -> list[SessionLike]:
    return [s for s in sessions if s.check_out_time is not None]


def local_date(ts: datetime, tz: tzinfo = timezone.utc) -> date:
    return ensure_utc(ts).astimezone(tz).date()


def daily_rollup(sessions: Iterable[SessionLike], tz: tzinfo = timezone.utc) -> list[DailyTotal]:
    """Sum completed sessions per calendar date of their check-in."""
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for s in _completed(sessions):
        totals[local_date(s.check_in_time, tz)] += session_hours(s)
    return [DailyTotal(date=d, total_hours=h) for d, h in sorted(totals.items(), reverse=True)]


def monthly_rollup(daily: Iterable[DailyTotal]) -> list[MonthlyTotal]:
    totals: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    for day in daily:
        totals[(day.date.year, day.date.month)] += day.total_hours
    return [
        MonthlyTotal(year=y, month=m, total_hours=h)
        for (y, m), h in sorted(totals.items(), reverse=True)
    ]


def yearly_rollup(monthly: Iterable[MonthlyTotal]) -> list[YearlyTotal]:
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for month in monthly:
        totals[month.year] += month.total_hours
    return [YearlyTotal(year=y, total_hours=h) for y, h in sorted(totals.items(), reverse=True)]


def detailed_rollup(sessions: Iterable[SessionLike], tz: tzinfo = timezone.utc) -> DetailedReport:
    daily = daily_rollup(sessions, tz)
    monthly = monthly_rollup(daily)
    return DetailedReport(daily=daily, monthly=monthly, yearly=yearly_rollup(monthly))


def summary_rollup(sessions: Iterable[SessionLike]) -> AttendanceSummary:
    """Counts and totals over every session of one worker, open ones included."""
    sessions = list(sessions)
    if not sessions:
        return AttendanceSummary()
    completed = _completed(sessions)
    return AttendanceSummary(
        total_days=len(sessions),
        completed_days=len(completed),
        first_check_in=min(ensure_utc(s.check_in_time) for s in sessions),
        last_check_out=max((ensure_utc(s.check_out_time) for s in completed), default=None),
        total_hours=sum((session_hours(s) for s in completed), ZERO),
    )
