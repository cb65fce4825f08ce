"""
AttendanceSession model — one row per check-in, closed by its check-out.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (Column, DateTime, ForeignKey, Index, Integer, Numeric,
                        String, text)

from attendance_tracker.db.base import Base

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"


class AttendanceSession(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        Index("ix_attendance_worker_check_in", "worker_id", "check_in_time"),
        # At most one open session per worker
        Index(
            "uq_attendance_open_session",
            "worker_id",
            unique=True,
            postgresql_where=text("check_out_time IS NULL"),
            sqlite_where=text("check_out_time IS NULL"),
        ),
    )

    id: int = Column(Integer, primary_key=True, autoincrement=True)  # type: ignore[assignment]
    worker_id: str = Column(String(50), ForeignKey("workers.id"), nullable=False)  # type: ignore[assignment]
    check_in_time: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    check_out_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    total_hours: Decimal | None = Column(Numeric(10, 2), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=STATUS_ACTIVE,
        server_default=STATUS_ACTIVE,
    )  # active | completed
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None
