"""
First-run seeding: the default admin and, optionally, two demo workers.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_, select

from attendance_tracker.core.config import Settings
from attendance_tracker.core.security import get_password_hash
from attendance_tracker.db.session import Database
from attendance_tracker.models.worker import ROLE_ADMIN, ROLE_WORKER, Worker

logger = logging.getLogger(__name__)

DEMO_WORKERS = [
    {
        "id": "kitchen1",
        "name": "Kitchen Worker",
        "email": "kitchen@attendance.local",
        "password": "kitchen123",
        "department": "Kitchen",
        "position": "Chef",
    },
    {
        "id": "service1",
        "name": "Service Worker",
        "email": "service@attendance.local",
        "password": "service123",
        "department": "Service",
        "position": "Waiter",
    },
]


async def seed_defaults(db: Database, settings: Settings) -> None:
    async with db.session() as session:
        result = await session.execute(
            select(Worker).where(
                or_(
                    Worker.email == settings.FIRST_ADMIN_EMAIL,
                    Worker.id == settings.FIRST_ADMIN_ID,
                )
            )
        )
        if result.scalar_one_or_none() is None:
            session.add(
                Worker(
                    id=settings.FIRST_ADMIN_ID,
                    name="System Administrator",
                    email=settings.FIRST_ADMIN_EMAIL.lower(),
                    hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                    role=ROLE_ADMIN,
                    department="Management",
                    position="System Administrator",
                )
            )
            await session.commit()
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )

        if not settings.SEED_DEMO_WORKERS:
            return

        for spec in DEMO_WORKERS:
            exists = await session.execute(
                select(Worker.id).where(
                    or_(Worker.id == spec["id"], Worker.email == spec["email"])
                )
            )
            if exists.first() is not None:
                continue
            fields = {k: v for k, v in spec.items() if k != "password"}
            session.add(
                Worker(
                    **fields,
                    role=ROLE_WORKER,
                    hashed_password=get_password_hash(spec["password"]),
                )
            )
            logger.info("Demo worker created: %s", spec["id"])
        await session.commit()
