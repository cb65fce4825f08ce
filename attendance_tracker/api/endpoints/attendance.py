"""
Check-in / check-out, status and attendance history endpoints.

- Workers act on themselves; the acting worker comes from the bearer token.
- Admins may clock a named worker in or out and read anyone's history.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends

from attendance_tracker.api.deps import (ensure_self_or_admin,
                                         get_current_active_worker, get_ledger,
                                         get_state_machine)
from attendance_tracker.core.config import settings
from attendance_tracker.core.exceptions import ValidationError
from attendance_tracker.models.attendance import AttendanceSession
from attendance_tracker.models.worker import Worker
from attendance_tracker.schemas.attendance import (AttendanceActionRequest,
                                                   AttendanceListResponse,
                                                   AttendanceRead,
                                                   CheckInData,
                                                   CheckInResponse,
                                                   CheckOutData,
                                                   CheckOutResponse,
                                                   StatusData, StatusResponse)
from attendance_tracker.services.ledger import (AttendanceLedger, day_bounds,
                                                ensure_utc)
from attendance_tracker.services.state_machine import AttendanceStateMachine

router = APIRouter(tags=["attendance"])
logger = logging.getLogger(__name__)


def _target_worker(caller: Worker, body: AttendanceActionRequest | None) -> str:
    worker_id = body.worker_id if body and body.worker_id else caller.id
    ensure_self_or_admin(caller, worker_id)
    return worker_id


def _to_read(att: AttendanceSession, worker: Worker | None = None) -> AttendanceRead:
    return AttendanceRead(
        id=att.id,
        worker_id=att.worker_id,
        check_in_time=ensure_utc(att.check_in_time),
        check_out_time=ensure_utc(att.check_out_time) if att.check_out_time else None,
        total_hours=float(att.total_hours) if att.total_hours is not None else None,
        status=att.status,
        worker_name=worker.name if worker else None,
        worker_email=worker.email if worker else None,
        department=worker.department if worker else None,
        position=worker.position if worker else None,
    )


def _validate_range(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date")


# ── Check-in / check-out ────────────────────────────────────────────
@router.post("/check-in", response_model=CheckInResponse)
@router.post("/checkin", response_model=CheckInResponse, include_in_schema=False)
async def check_in(
    body: AttendanceActionRequest | None = None,
    caller: Worker = Depends(get_current_active_worker),
    machine: AttendanceStateMachine = Depends(get_state_machine),
) -> CheckInResponse:
    """Open an attendance session for the caller (or a named worker, admins only)."""
    result = await machine.check_in(_target_worker(caller, body))
    return CheckInResponse(
        data=CheckInData(
            id=result.session_id,
            worker_id=result.worker_id,
            check_in_time=result.check_in_time,
        )
    )


@router.post("/check-out", response_model=CheckOutResponse)
@router.post("/checkout", response_model=CheckOutResponse, include_in_schema=False)
async def check_out(
    body: AttendanceActionRequest | None = None,
    caller: Worker = Depends(get_current_active_worker),
    machine: AttendanceStateMachine = Depends(get_state_machine),
) -> CheckOutResponse:
    """Close the open session and report the hours worked."""
    result = await machine.check_out(_target_worker(caller, body))
    return CheckOutResponse(
        data=CheckOutData(
            id=result.session_id,
            worker_id=result.worker_id,
            check_in_time=result.check_in_time,
            check_out_time=result.check_out_time,
            total_hours=float(result.total_hours),
        )
    )


# ── Status ──────────────────────────────────────────────────────────
async def _status(machine: AttendanceStateMachine, worker_id: str) -> StatusResponse:
    status = await machine.get_status(worker_id)
    return StatusResponse(
        data=StatusData(
            worker_id=status.worker_id,
            state=status.state,
            is_checked_in=status.is_checked_in,
            session_id=status.session_id,
            last_check_in=status.check_in_time,
        )
    )


@router.get("/worker/status", response_model=StatusResponse)
async def own_status(
    caller: Worker = Depends(get_current_active_worker),
    machine: AttendanceStateMachine = Depends(get_state_machine),
) -> StatusResponse:
    return await _status(machine, caller.id)


@router.get("/attendance/status/{worker_id}", response_model=StatusResponse)
async def worker_status(
    worker_id: str,
    caller: Worker = Depends(get_current_active_worker),
    machine: AttendanceStateMachine = Depends(get_state_machine),
) -> StatusResponse:
    ensure_self_or_admin(caller, worker_id)
    return await _status(machine, worker_id)


# ── History ─────────────────────────────────────────────────────────
@router.get("/attendance", response_model=AttendanceListResponse)
async def list_attendance(
    worker_id: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    caller: Worker = Depends(get_current_active_worker),
    ledger: AttendanceLedger = Depends(get_ledger),
) -> AttendanceListResponse:
    """All sessions for admins (optionally filtered); own sessions for workers."""
    _validate_range(start_date, end_date)
    if not caller.is_admin:
        ensure_self_or_admin(caller, worker_id or caller.id)
        worker_id = caller.id

    start, end = day_bounds(start_date, end_date, settings.report_tz)
    rows = await ledger.list_sessions(worker_id=worker_id, start=start, end=end)
    return AttendanceListResponse(records=[_to_read(att, worker) for att, worker in rows])


@router.get("/worker/attendance", response_model=AttendanceListResponse)
async def own_attendance(
    start_date: date | None = None,
    end_date: date | None = None,
    caller: Worker = Depends(get_current_active_worker),
    ledger: AttendanceLedger = Depends(get_ledger),
) -> AttendanceListResponse:
    _validate_range(start_date, end_date)
    start, end = day_bounds(start_date, end_date, settings.report_tz)
    rows = await ledger.list_sessions(worker_id=caller.id, start=start, end=end)
    return AttendanceListResponse(records=[_to_read(att) for att, _worker in rows])
