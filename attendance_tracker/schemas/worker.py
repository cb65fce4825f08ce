"""Pydantic schemas for Worker CRUD."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, field_validator

_VALID_ROLES = {"admin", "worker"}
_VALID_STATUSES = {"active", "inactive"}
_ID_RE = re.compile(r"^[A-Za-z0-9_.-]{2,50}$")


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Invalid email address")
    return v


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    if len(v) > 200:
        raise ValueError("Name must not exceed 200 characters")
    return v


class WorkerCreate(BaseModel):
    id: str
    name: str
    email: str
    password: str
    role: str = "worker"
    department: str | None = None
    position: str | None = None
    hire_date: datetime | None = None

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: str) -> str:
        v = v.strip()
        if not _ID_RE.match(v):
            raise ValueError(
                "Worker id must be 2-50 chars of letters, digits, '.', '_' or '-'"
            )
        return v

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        if v not in _VALID_ROLES:
            raise ValueError(f"Role must be one of: {sorted(_VALID_ROLES)}")
        return v


class WorkerUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    department: str | None = None
    position: str | None = None
    # Admin-only fields
    role: str | None = None
    status: str | None = None
    password: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _normalise_email(v) if v is not None else v

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str | None) -> str | None:
        if v is not None and v not in _VALID_ROLES:
            raise ValueError(f"Role must be one of: {sorted(_VALID_ROLES)}")
        return v

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in _VALID_STATUSES:
            raise ValueError(f"Status must be one of: {sorted(_VALID_STATUSES)}")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class WorkerRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    department: str | None
    position: str | None
    hire_date: datetime | None
    status: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class LatestAttendance(BaseModel):
    check_in_time: datetime
    check_out_time: datetime | None


class RosterEntry(WorkerRead):
    attendance_status: str  # Active (checked in) | Passive
    latest_attendance: LatestAttendance | None = None


class WorkerListResponse(BaseModel):
    success: bool = True
    workers: list[RosterEntry]


class WorkerResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: WorkerRead
