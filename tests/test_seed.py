"""Tests for first-run seeding."""

import pytest
from sqlalchemy import func, select

from attendance_tracker.core.config import Settings
from attendance_tracker.core.security import verify_password
from attendance_tracker.db.seed import seed_defaults
from attendance_tracker.models.worker import Worker


def _settings(**overrides):
    values = {
        "FIRST_ADMIN_ID": "boss",
        "FIRST_ADMIN_EMAIL": "boss@example.com",
        "FIRST_ADMIN_PASSWORD": "boss-pass",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_seed_creates_admin_once(database, db_session):
    await seed_defaults(database, _settings())
    await seed_defaults(database, _settings())

    admins = (await db_session.execute(select(Worker).where(Worker.id == "boss"))).scalars().all()
    assert len(admins) == 1
    assert admins[0].is_admin
    assert verify_password("boss-pass", admins[0].hashed_password)


@pytest.mark.asyncio
async def test_seed_demo_workers(database, db_session):
    await seed_defaults(database, _settings(SEED_DEMO_WORKERS=True))
    await seed_defaults(database, _settings(SEED_DEMO_WORKERS=True))

    count = (await db_session.execute(select(func.count(Worker.id)))).scalar_one()
    assert count == 3
    kitchen = await db_session.get(Worker, "kitchen1")
    assert kitchen.department == "Kitchen"
    assert kitchen.role == "worker"
