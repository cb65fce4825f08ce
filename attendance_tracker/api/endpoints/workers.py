"""
Worker roster CRUD.

- Listing and creating workers requires the admin role.
- A worker may read and edit their own profile (name / e-mail only).
- Workers are never hard-deleted; admins set ``status`` to ``inactive``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from attendance_tracker.api.deps import (ensure_self_or_admin,
                                         get_current_active_worker, get_ledger,
                                         require_admin)
from attendance_tracker.core.exceptions import (AuthorizationError,
                                                DuplicateWorkerError,
                                                NotFoundError)
from attendance_tracker.core.security import get_password_hash
from attendance_tracker.models.worker import Worker
from attendance_tracker.schemas.worker import (LatestAttendance, RosterEntry,
                                               WorkerCreate, WorkerListResponse,
                                               WorkerRead, WorkerResponse,
                                               WorkerUpdate)
from attendance_tracker.services.ledger import AttendanceLedger, ensure_utc

router = APIRouter(tags=["workers"])
logger = logging.getLogger(__name__)

_SELF_EDITABLE = {"name", "email"}


async def _get_or_404(ledger: AttendanceLedger, worker_id: str) -> Worker:
    worker = await ledger.get_worker(worker_id)
    if worker is None:
        raise NotFoundError(f"Worker '{worker_id}' not found")
    return worker


@router.get("/workers", response_model=WorkerListResponse)
async def list_workers(
    department: str | None = None,
    ledger: AttendanceLedger = Depends(get_ledger),
    _admin: Worker = Depends(require_admin),
) -> WorkerListResponse:
    """Roster of workers with their live attendance status."""
    workers = await ledger.list_workers(department=department)
    latest = await ledger.latest_sessions([w.id for w in workers])

    entries = []
    for worker in workers:
        att = latest.get(worker.id)
        checked_in = att is not None and att.check_out_time is None
        entries.append(
            RosterEntry(
                **WorkerRead.model_validate(worker).model_dump(),
                attendance_status="Active" if checked_in else "Passive",
                latest_attendance=(
                    LatestAttendance(
                        check_in_time=ensure_utc(att.check_in_time),
                        check_out_time=ensure_utc(att.check_out_time) if att.check_out_time else None,
                    )
                    if att is not None
                    else None
                ),
            )
        )
    return WorkerListResponse(workers=entries)


@router.post("/workers", response_model=WorkerResponse, status_code=201)
async def create_worker(
    body: WorkerCreate,
    ledger: AttendanceLedger = Depends(get_ledger),
    _admin: Worker = Depends(require_admin),
) -> WorkerResponse:
    if await ledger.worker_exists(body.id, body.email):
        raise DuplicateWorkerError(
            f"Worker id '{body.id}' or email '{body.email}' already registered"
        )

    fields = body.model_dump(exclude={"password"}, exclude_none=True)
    worker = Worker(**fields, hashed_password=get_password_hash(body.password))
    ledger.session.add(worker)
    await ledger.commit()
    await ledger.session.refresh(worker)
    logger.info("Created worker %s (%s)", worker.id, worker.role)
    return WorkerResponse(message="Worker created", data=WorkerRead.model_validate(worker))


@router.get("/workers/{worker_id}", response_model=WorkerResponse)
async def get_worker(
    worker_id: str,
    ledger: AttendanceLedger = Depends(get_ledger),
    caller: Worker = Depends(get_current_active_worker),
) -> WorkerResponse:
    ensure_self_or_admin(caller, worker_id)
    worker = await _get_or_404(ledger, worker_id)
    return WorkerResponse(data=WorkerRead.model_validate(worker))


@router.put("/workers/{worker_id}", response_model=WorkerResponse)
async def update_worker(
    worker_id: str,
    body: WorkerUpdate,
    ledger: AttendanceLedger = Depends(get_ledger),
    caller: Worker = Depends(get_current_active_worker),
) -> WorkerResponse:
    ensure_self_or_admin(caller, worker_id)
    # Only department / position may be cleared with an explicit null
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in ("department", "position")
    }
    if not caller.is_admin and set(changes) - _SELF_EDITABLE:
        raise AuthorizationError("Only admins can change role, status, department or position")

    worker = await _get_or_404(ledger, worker_id)

    new_email = changes.get("email")
    if new_email and new_email != worker.email:
        existing = await ledger.find_worker_by_email(new_email)
        if existing is not None:
            raise DuplicateWorkerError(f"Email '{new_email}' already registered")

    password = changes.pop("password", None)
    if password:
        worker.hashed_password = get_password_hash(password)
    for field, value in changes.items():
        setattr(worker, field, value)

    await ledger.commit()
    await ledger.session.refresh(worker)
    logger.info("Updated worker %s", worker_id)
    return WorkerResponse(message="Profile updated successfully", data=WorkerRead.model_validate(worker))
