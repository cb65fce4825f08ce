"""
Reporting endpoints — per-worker summary, daily/monthly/yearly hours, CSV export.

Each endpoint fetches the sessions it needs in **one** query and hands them
to the pure aggregator.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from attendance_tracker.api.deps import get_ledger, require_admin
from attendance_tracker.core.config import settings
from attendance_tracker.core.exceptions import NotFoundError, ValidationError
from attendance_tracker.models.worker import Worker
from attendance_tracker.schemas.attendance import (DailyHours, DetailedData,
                                                   DetailedResponse,
                                                   HealthResponse,
                                                   MonthlyHours, SummaryData,
                                                   SummaryResponse,
                                                   YearlyHours)
from attendance_tracker.services.aggregator import (AttendanceSummary,
                                                    detailed_rollup,
                                                    summary_rollup)
from attendance_tracker.services.export import (WorkerSummaryRow,
                                                all_workers_csv,
                                                worker_report_csv)
from attendance_tracker.services.ledger import AttendanceLedger, day_bounds

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


# ── Helpers ─────────────────────────────────────────────────────────
async def _load_worker_sessions(
    ledger: AttendanceLedger,
    worker_id: str,
    start_date: date | None,
    end_date: date | None,
):
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date")
    worker = await ledger.get_worker(worker_id)
    if worker is None:
        raise NotFoundError(f"Worker '{worker_id}' not found")
    start, end = day_bounds(start_date, end_date, settings.report_tz)
    sessions = await ledger.worker_sessions(worker_id, start=start, end=end)
    return worker, sessions


def _summary_data(worker_id: str, summary: AttendanceSummary) -> SummaryData:
    return SummaryData(
        worker_id=worker_id,
        total_days=summary.total_days,
        completed_days=summary.completed_days,
        first_check_in=summary.first_check_in,
        last_check_out=summary.last_check_out,
        total_hours=float(summary.total_hours),
    )


# ── Summary ─────────────────────────────────────────────────────────
@router.get("/attendance/summary/{worker_id}", response_model=SummaryResponse)
async def attendance_summary(
    worker_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    ledger: AttendanceLedger = Depends(get_ledger),
    _admin: Worker = Depends(require_admin),
) -> SummaryResponse:
    """Session counts, first/last timestamps and total hours for one worker."""
    _worker, sessions = await _load_worker_sessions(ledger, worker_id, start_date, end_date)
    return SummaryResponse(data=_summary_data(worker_id, summary_rollup(sessions)))


# ── Daily / monthly / yearly ────────────────────────────────────────
@router.get("/attendance/detailed/{worker_id}", response_model=DetailedResponse)
async def attendance_detailed(
    worker_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    ledger: AttendanceLedger = Depends(get_ledger),
    _admin: Worker = Depends(require_admin),
) -> DetailedResponse:
    """Hours per day, month and year, most recent first."""
    _worker, sessions = await _load_worker_sessions(ledger, worker_id, start_date, end_date)
    report = detailed_rollup(sessions, settings.report_tz)
    return DetailedResponse(
        data=DetailedData(
            worker_id=worker_id,
            daily=[DailyHours(date=d.date, total_hours=float(d.total_hours)) for d in report.daily],
            monthly=[
                MonthlyHours(year=m.year, month=m.month, total_hours=float(m.total_hours))
                for m in report.monthly
            ],
            yearly=[YearlyHours(year=y.year, total_hours=float(y.total_hours)) for y in report.yearly],
        )
    )


# ── CSV export ──────────────────────────────────────────────────────
@router.get("/attendance/export/{worker_id}")
async def export_worker_report(
    worker_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    ledger: AttendanceLedger = Depends(get_ledger),
    _admin: Worker = Depends(require_admin),
) -> StreamingResponse:
    """Download one worker's time report as CSV."""
    worker, sessions = await _load_worker_sessions(ledger, worker_id, start_date, end_date)
    summary = summary_rollup(sessions)
    report = detailed_rollup(sessions, settings.report_tz)
    logger.info("Exporting time report for %s (%d sessions)", worker_id, len(sessions))
    return StreamingResponse(
        worker_report_csv(worker, summary, report),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=time_report_{worker.id}.csv"
        },
    )


@router.get("/attendance/export")
async def export_all_workers(
    department: str | None = None,
    ledger: AttendanceLedger = Depends(get_ledger),
    _admin: Worker = Depends(require_admin),
) -> StreamingResponse:
    """Download a summary line per worker as CSV, grouped by department."""
    workers = await ledger.list_workers(department=department)
    by_worker = await ledger.sessions_for_workers([w.id for w in workers])
    entries = [WorkerSummaryRow(worker=w, summary=summary_rollup(by_worker[w.id])) for w in workers]
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return StreamingResponse(
        all_workers_csv(entries, settings.report_tz),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=all_workers_time_report_{today}.csv"
        },
    )


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Public health check — database connectivity."""
    db_ok = await request.app.state.db.ping()
    return HealthResponse(
        status="ok" if db_ok else "error",
        database="connected" if db_ok else "disconnected",
        timestamp=datetime.now(timezone.utc),
    )
