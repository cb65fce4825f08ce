"""
CSV rendering for the time reports admins download.
"""

from __future__ import annotations

import calendar
import csv
import io
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import timezone, tzinfo

from attendance_tracker.models.worker import Worker
from attendance_tracker.services.aggregator import (AttendanceSummary,
                                                    DetailedReport,
                                                    local_date)


@dataclass(frozen=True)
class WorkerSummaryRow:
    worker: Worker
    summary: AttendanceSummary


def _rows_to_csv(rows: Iterator[list]) -> Iterator[str]:
    """Yield one CSV-encoded line per row (quoting handled by ``csv``)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
        yield buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)


def _fmt_date(value, tz: tzinfo = timezone.utc) -> str:
    return local_date(value, tz).isoformat() if value is not None else ""


def _fmt_hours(value) -> str:
    return f"{value:.2f}"


def worker_report_csv(
    worker: Worker, summary: AttendanceSummary, detail: DetailedReport
) -> Iterator[str]:
    """Summary, daily, monthly and yearly sections for one worker."""

    def rows() -> Iterator[list]:
        yield ["Worker", worker.id, worker.name]
        yield []
        yield ["Summary"]
        yield ["total_days", "completed_days", "first_check_in", "last_check_out", "total_hours"]
        yield [
            summary.total_days,
            summary.completed_days,
            summary.first_check_in.isoformat() if summary.first_check_in else "",
            summary.last_check_out.isoformat() if summary.last_check_out else "",
            _fmt_hours(summary.total_hours),
        ]
        yield []
        yield ["Daily Hours"]
        yield ["date", "hours"]
        for day in detail.daily:
            yield [day.date.isoformat(), _fmt_hours(day.total_hours)]
        yield []
        yield ["Monthly Hours"]
        yield ["month", "hours"]
        for month in detail.monthly:
            label = f"{calendar.month_name[month.month]} {month.year}"
            yield [label, _fmt_hours(month.total_hours)]
        yield []
        yield ["Yearly Hours"]
        yield ["year", "hours"]
        for year in detail.yearly:
            yield [str(year.year), _fmt_hours(year.total_hours)]

    return _rows_to_csv(rows())


def all_workers_csv(
    entries: list[WorkerSummaryRow], tz: tzinfo = timezone.utc
) -> Iterator[str]:
    """One summary line per worker, grouped by department.

    ``first_check_in`` is the calendar date in *tz*, the zone the daily
    rollups use.
    """

    def rows() -> Iterator[list]:
        yield [
            "worker_id",
            "name",
            "department",
            "position",
            "total_days",
            "completed_days",
            "total_hours",
            "first_check_in",
        ]
        ordered = sorted(
            entries, key=lambda e: ((e.worker.department or "").lower(), e.worker.name.lower())
        )
        for entry in ordered:
            yield [
                entry.worker.id,
                entry.worker.name,
                entry.worker.department or "",
                entry.worker.position or "",
                entry.summary.total_days,
                entry.summary.completed_days,
                _fmt_hours(entry.summary.total_hours),
                _fmt_date(entry.summary.first_check_in, tz),
            ]

    return _rows_to_csv(rows())
