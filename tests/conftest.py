"""
Shared test fixtures for the Attendance Tracker test suite.

Each test gets its own SQLite file database (aiosqlite) so that concurrent
requests use separate connections, the way they would against PostgreSQL.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-attendance-suite"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = '["*"]'

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.security import create_worker_token, get_password_hash
from attendance_tracker.db.session import Database
from attendance_tracker.main import create_app
from attendance_tracker.models.worker import Worker
from attendance_tracker.services.ledger import AttendanceLedger
from attendance_tracker.services.state_machine import AttendanceStateMachine

# bcrypt is slow on purpose; hash the shared test password once
TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create all tables before usage and dispose the engine after."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'attendance.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def app(database: Database):
    # ASGITransport does not run the lifespan, so the handle is injected here
    return create_app(database)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session() as session:
        yield session


@pytest.fixture
def ledger(db_session: AsyncSession) -> AttendanceLedger:
    return AttendanceLedger(db_session)


@pytest.fixture
def machine(ledger: AttendanceLedger) -> AttendanceStateMachine:
    return AttendanceStateMachine(ledger)


# ── Workers & tokens ────────────────────────────────────────────────
async def add_worker(
    session: AsyncSession,
    worker_id: str,
    role: str = "worker",
    department: str | None = "Kitchen",
    status: str = "active",
) -> Worker:
    worker = Worker(
        id=worker_id,
        name=f"Worker {worker_id}",
        email=f"{worker_id}@example.com",
        hashed_password=TEST_PASSWORD_HASH,
        role=role,
        department=department,
        position="Pizza Chef" if role == "worker" else "Manager",
        status=status,
    )
    session.add(worker)
    await session.commit()
    return worker


def auth_headers(worker: Worker) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_worker_token(worker)}"}


@pytest.fixture
async def admin(db_session: AsyncSession) -> Worker:
    return await add_worker(db_session, "admin1", role="admin", department="Management")


@pytest.fixture
async def worker(db_session: AsyncSession) -> Worker:
    return await add_worker(db_session, "w1")


@pytest.fixture
def admin_headers(admin: Worker) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def worker_headers(worker: Worker) -> dict[str, str]:
    return auth_headers(worker)
