"""Pydantic schemas for check-in / check-out, attendance history and reports."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, field_validator


# ── Check-in / check-out ────────────────────────────────────────────
class AttendanceActionRequest(BaseModel):
    """Body for check-in / check-out.

    Workers act on themselves and may omit the body.  Admins may name the
    worker they are clocking in or out.
    """

    worker_id: str | None = None

    @field_validator("worker_id")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Worker ID must not be empty")
        return v


class CheckInData(BaseModel):
    id: int
    worker_id: str
    check_in_time: datetime


class CheckInResponse(BaseModel):
    success: bool = True
    message: str = "Check-in successful"
    data: CheckInData


class CheckOutData(BaseModel):
    id: int
    worker_id: str
    check_in_time: datetime
    check_out_time: datetime
    total_hours: float


class CheckOutResponse(BaseModel):
    success: bool = True
    message: str = "Check-out successful"
    data: CheckOutData


class StatusData(BaseModel):
    worker_id: str
    state: str  # IN | OUT
    is_checked_in: bool
    session_id: int | None = None
    last_check_in: datetime | None = None


class StatusResponse(BaseModel):
    success: bool = True
    data: StatusData


# ── Attendance history ──────────────────────────────────────────────
class AttendanceRead(BaseModel):
    id: int
    worker_id: str
    check_in_time: datetime
    check_out_time: datetime | None
    total_hours: float | None
    status: str
    worker_name: str | None = None  # joined from workers table
    worker_email: str | None = None
    department: str | None = None
    position: str | None = None


class AttendanceListResponse(BaseModel):
    success: bool = True
    records: list[AttendanceRead]


# ── Reports ─────────────────────────────────────────────────────────
class SummaryData(BaseModel):
    worker_id: str
    total_days: int
    completed_days: int
    first_check_in: datetime | None
    last_check_out: datetime | None
    total_hours: float


class SummaryResponse(BaseModel):
    success: bool = True
    data: SummaryData


class DailyHours(BaseModel):
    date: date
    total_hours: float


class MonthlyHours(BaseModel):
    year: int
    month: int
    total_hours: float


class YearlyHours(BaseModel):
    year: int
    total_hours: float


class DetailedData(BaseModel):
    worker_id: str
    daily: list[DailyHours]
    monthly: list[MonthlyHours]
    yearly: list[YearlyHours]


class DetailedResponse(BaseModel):
    success: bool = True
    data: DetailedData


# ── Health ──────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime
