"""Tests for the pure time rollups."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from attendance_tracker.services.aggregator import (ZERO, daily_rollup,
                                                    detailed_rollup,
                                                    monthly_rollup,
                                                    session_hours,
                                                    summary_rollup,
                                                    yearly_rollup)


@dataclass
class FakeSession:
    check_in_time: datetime
    check_out_time: datetime | None = None
    total_hours: Decimal | None = None


def _shift(year, month, day, hour, hours, stored=True):
    start = datetime(year, month, day, hour, tzinfo=timezone.utc)
    end = start + timedelta(hours=hours)
    return FakeSession(start, end, Decimal(str(hours)).quantize(ZERO) if stored else None)


SESSIONS = [
    _shift(2023, 12, 30, 9, 8),
    _shift(2024, 1, 10, 9, 4.5),
    _shift(2024, 1, 10, 14, 3.25),
    _shift(2024, 1, 11, 9, 8),
    _shift(2024, 2, 1, 22, 6, stored=False),
    FakeSession(datetime(2024, 2, 2, 9, tzinfo=timezone.utc)),  # still open
]


def test_session_hours_prefers_stored_value():
    s = _shift(2024, 1, 1, 9, 2)
    s.total_hours = Decimal("1.99")
    assert session_hours(s) == Decimal("1.99")


def test_session_hours_computed_when_missing():
    assert session_hours(_shift(2024, 1, 1, 9, 1.5, stored=False)) == Decimal("1.50")
    assert session_hours(FakeSession(datetime(2024, 1, 1, tzinfo=timezone.utc))) == ZERO


def test_daily_sums_same_day_and_skips_open_sessions():
    daily = daily_rollup(SESSIONS)
    assert [(d.date, d.total_hours) for d in daily] == [
        (date(2024, 2, 1), Decimal("6.00")),
        (date(2024, 1, 11), Decimal("8.00")),
        (date(2024, 1, 10), Decimal("7.75")),
        (date(2023, 12, 30), Decimal("8.00")),
    ]


def test_monthly_and_yearly_are_most_recent_first():
    report = detailed_rollup(SESSIONS)
    assert [(m.year, m.month, m.total_hours) for m in report.monthly] == [
        (2024, 2, Decimal("6.00")),
        (2024, 1, Decimal("15.75")),
        (2023, 12, Decimal("8.00")),
    ]
    assert [(y.year, y.total_hours) for y in report.yearly] == [
        (2024, Decimal("21.75")),
        (2023, Decimal("8.00")),
    ]


def test_rollups_agree_at_every_granularity():
    daily = daily_rollup(SESSIONS)
    monthly = monthly_rollup(daily)
    yearly = yearly_rollup(monthly)
    direct = sum((session_hours(s) for s in SESSIONS if s.check_out_time), ZERO)
    assert sum(d.total_hours for d in daily) == direct
    assert sum(m.total_hours for m in monthly) == direct
    assert sum(y.total_hours for y in yearly) == direct
    assert summary_rollup(SESSIONS).total_hours == direct


def test_days_follow_report_timezone():
    # 23:30 UTC on 1 Feb (winter, UTC+1) is 00:30 on 2 Feb in Berlin
    start = datetime(2024, 2, 1, 23, 30, tzinfo=timezone.utc)
    late = [FakeSession(start, start + timedelta(hours=6), Decimal("6.00"))]
    assert daily_rollup(late)[0].date == date(2024, 2, 1)
    assert daily_rollup(late, ZoneInfo("Europe/Berlin"))[0].date == date(2024, 2, 2)


def test_summary_counts_open_sessions_but_not_their_hours():
    summary = summary_rollup(SESSIONS)
    assert summary.total_days == 6
    assert summary.completed_days == 5
    assert summary.first_check_in == datetime(2023, 12, 30, 9, tzinfo=timezone.utc)
    assert summary.last_check_out == datetime(2024, 2, 2, 4, tzinfo=timezone.utc)
    assert summary.total_hours == Decimal("29.75")


def test_empty_summary_is_zeroed():
    summary = summary_rollup([])
    assert summary.total_days == 0
    assert summary.completed_days == 0
    assert summary.first_check_in is None
    assert summary.last_check_out is None
    assert summary.total_hours == ZERO
    assert detailed_rollup([]).daily == []


def test_naive_timestamps_are_read_as_utc():
    naive = FakeSession(datetime(2024, 3, 1, 23), datetime(2024, 3, 2, 1), None)
    assert session_hours(naive) == Decimal("2.00")
    assert daily_rollup([naive])[0].date == date(2024, 3, 1)
