"""
Async SQLAlchemy engine & session factory (asyncpg / aiosqlite drivers).

The engine is owned by an explicitly constructed :class:`Database` handle.
``create_app()`` builds one, stores it on ``app.state.db`` and the lifespan
initialises and disposes it, so nothing here holds process-global state.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)

from attendance_tracker.db.base import Base

logger = logging.getLogger(__name__)


def _engine_args(url: str) -> dict:
    engine_args: dict = {
        "echo": False,
        "pool_pre_ping": True,
    }
    if "postgresql" in url:
        engine_args.update(
            {
                "pool_size": 20,
                "max_overflow": 10,
                "pool_recycle": 300,
            }
        )
    return engine_args


class Database:
    """Process-lifetime persistence handle."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **_engine_args(url))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create all tables (idempotent)."""
        # Register every model on Base.metadata
        from attendance_tracker.models import attendance, worker  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database ping failed: %s", e)
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()
