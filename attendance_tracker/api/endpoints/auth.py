"""
Auth endpoints — e-mail login for any role, worker login by id or e-mail.
"""

import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from attendance_tracker.api.deps import get_current_active_worker, get_ledger
from attendance_tracker.core.config import settings
from attendance_tracker.core.exceptions import (AuthenticationError,
                                                AuthorizationError)
from attendance_tracker.core.security import (create_worker_token,
                                              verify_password)
from attendance_tracker.models.worker import ROLE_WORKER, Worker
from attendance_tracker.schemas.auth import (LoginRequest, LoginResponse,
                                             WorkerLoginRequest,
                                             WorkerLoginResponse)
from attendance_tracker.schemas.worker import WorkerRead, WorkerResponse
from attendance_tracker.services.ledger import AttendanceLedger

# Rate limiter — keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _check_credentials(worker: Worker | None, password: str, message: str) -> Worker:
    if worker is None or not verify_password(password, worker.hashed_password):
        raise AuthenticationError(message)
    if not worker.is_active:
        raise AuthorizationError("Worker account is inactive")
    return worker


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    ledger: AttendanceLedger = Depends(get_ledger),
) -> LoginResponse:
    """Authenticate any role with e-mail and password."""
    worker = await ledger.find_worker_by_email(body.email)
    worker = _check_credentials(worker, body.password, "Invalid email or password")

    logger.info("Login successful for %s (%s)", worker.id, worker.role)
    return LoginResponse(
        token=create_worker_token(worker),
        user=WorkerRead.model_validate(worker),
    )


@router.post("/worker-login", response_model=WorkerLoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def worker_login(
    request: Request,
    body: WorkerLoginRequest,
    ledger: AttendanceLedger = Depends(get_ledger),
) -> WorkerLoginResponse:
    """Authenticate a worker by e-mail or worker id.

    An ``id`` containing ``@`` is treated as an e-mail address.
    """
    identifier = body.id or body.email or ""
    if body.email or "@" in identifier:
        worker = await ledger.find_worker_by_email(body.email or identifier)
    else:
        worker = await ledger.get_worker(identifier.strip())

    if worker is not None and worker.role != ROLE_WORKER:
        worker = None
    worker = _check_credentials(worker, body.password, "Invalid credentials")

    logger.info("Worker login successful for %s", worker.id)
    return WorkerLoginResponse(
        token=create_worker_token(worker),
        worker=WorkerRead.model_validate(worker),
    )


@router.get("/me", response_model=WorkerResponse)
async def read_current_worker(
    current: Worker = Depends(get_current_active_worker),
) -> WorkerResponse:
    """Return profile of the currently authenticated caller."""
    return WorkerResponse(data=WorkerRead.model_validate(current))
