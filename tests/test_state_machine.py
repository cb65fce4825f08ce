"""Tests for the check-in / check-out lifecycle (service level)."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from conftest import add_worker
from sqlalchemy import func, select, text

from attendance_tracker.core.exceptions import (AlreadyCheckedInError,
                                                AuthorizationError,
                                                NotCheckedInError,
                                                NotFoundError,
                                                SessionDataError)
from attendance_tracker.models.attendance import AttendanceSession
from attendance_tracker.services.ledger import AttendanceLedger
from attendance_tracker.services.state_machine import (
    STATE_IN, STATE_OUT, AttendanceStateMachine, compute_total_hours)

T0 = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


async def _count(session, worker_id, open_only=False):
    query = select(func.count(AttendanceSession.id)).where(AttendanceSession.worker_id == worker_id)
    if open_only:
        query = query.where(AttendanceSession.check_out_time.is_(None))
    return (await session.execute(query)).scalar_one()


@pytest.mark.asyncio
async def test_full_shift_is_eight_and_a_half_hours(machine, worker):
    """In at 09:00, out at 17:30 → 8.50 hours."""
    checked_in = await machine.check_in("w1", now=T0)
    assert checked_in.check_in_time == T0

    result = await machine.check_out("w1", now=datetime(2024, 1, 10, 17, 30, tzinfo=timezone.utc))
    assert result.session_id == checked_in.session_id
    assert result.total_hours == Decimal("8.50")

    status = await machine.get_status("w1")
    assert status.state == STATE_OUT
    assert status.is_checked_in is False


@pytest.mark.asyncio
async def test_check_in_twice_is_rejected_without_mutation(machine, db_session, worker):
    await machine.check_in("w1", now=T0)
    with pytest.raises(AlreadyCheckedInError):
        await machine.check_in("w1", now=T0 + timedelta(minutes=1))
    assert await _count(db_session, "w1") == 1


@pytest.mark.asyncio
async def test_check_out_without_check_in_is_rejected(machine, db_session, worker):
    with pytest.raises(NotCheckedInError):
        await machine.check_out("w1", now=T0)
    assert await _count(db_session, "w1") == 0


@pytest.mark.asyncio
async def test_unknown_worker_is_not_found(machine):
    with pytest.raises(NotFoundError):
        await machine.check_in("ghost", now=T0)
    with pytest.raises(NotFoundError):
        await machine.check_out("ghost", now=T0)
    with pytest.raises(NotFoundError):
        await machine.get_status("ghost")


@pytest.mark.asyncio
async def test_open_session_from_previous_day_still_blocks_check_in(machine, worker):
    """The guard looks at any open session, not only today's."""
    await machine.check_in("w1", now=T0)
    next_day = T0 + timedelta(days=1, hours=14)
    with pytest.raises(AlreadyCheckedInError):
        await machine.check_in("w1", now=next_day)

    # The stale session can still be closed, and then a new one opened
    result = await machine.check_out("w1", now=next_day)
    assert result.total_hours == Decimal("38.00")
    await machine.check_in("w1", now=next_day + timedelta(minutes=5))


@pytest.mark.asyncio
async def test_status_reports_open_session(machine, worker):
    opened = await machine.check_in("w1", now=T0)
    status = await machine.get_status("w1")
    assert status.state == STATE_IN
    assert status.session_id == opened.session_id
    assert status.check_in_time == T0


@pytest.mark.asyncio
async def test_at_most_one_open_session_over_many_transitions(machine, db_session, worker):
    now = T0
    for step in range(12):
        now += timedelta(minutes=37)
        try:
            if step % 3 == 2:
                await machine.check_out("w1", now=now)
            else:
                await machine.check_in("w1", now=now)
        except (AlreadyCheckedInError, NotCheckedInError):
            pass
        assert await _count(db_session, "w1", open_only=True) <= 1


@pytest.mark.asyncio
async def test_check_out_before_check_in_is_a_data_error(machine, db_session, worker):
    await machine.check_in("w1", now=T0)
    with pytest.raises(SessionDataError):
        await machine.check_out("w1", now=T0 - timedelta(hours=1))
    # Session stays open
    assert await _count(db_session, "w1", open_only=True) == 1


@pytest.mark.asyncio
async def test_newest_open_session_is_closed_when_ledger_is_corrupted(database, db_session, worker):
    """Two open rows should never exist; if they do, the newest one is closed."""
    async with database.engine.begin() as conn:
        await conn.execute(text("DROP INDEX uq_attendance_open_session"))
    db_session.add_all(
        [
            AttendanceSession(worker_id="w1", check_in_time=T0 - timedelta(days=1)),
            AttendanceSession(worker_id="w1", check_in_time=T0),
        ]
    )
    await db_session.commit()
    machine = AttendanceStateMachine(AttendanceLedger(db_session))

    result = await machine.check_out("w1", now=T0 + timedelta(hours=2))
    assert result.check_in_time == T0
    assert result.total_hours == Decimal("2.00")


@pytest.mark.asyncio
async def test_racing_check_out_loses(database, worker):
    """A check-out working from a stale read must not close the session twice."""
    async with database.session() as first, database.session() as second:
        machine_a = AttendanceStateMachine(AttendanceLedger(first))
        ledger_b = AttendanceLedger(second)
        machine_b = AttendanceStateMachine(ledger_b)

        await machine_a.check_in("w1", now=T0)
        stale = await ledger_b.find_open_session("w1")
        assert stale is not None

        await machine_a.check_out("w1", now=T0 + timedelta(hours=1))

        async def stale_read(_worker_id):
            return stale

        ledger_b.find_open_session = stale_read
        with pytest.raises(NotCheckedInError):
            await machine_b.check_out("w1", now=T0 + timedelta(hours=2))

    async with database.session() as check:
        row = (await check.execute(select(AttendanceSession))).scalar_one()
        assert row.total_hours == Decimal("1.00")


@pytest.mark.asyncio
async def test_racing_check_in_hits_open_session_index(database, worker):
    """If the guard is bypassed, the partial unique index still refuses a second open row."""
    async with database.session() as first, database.session() as second:
        await AttendanceStateMachine(AttendanceLedger(first)).check_in("w1", now=T0)

        ledger_b = AttendanceLedger(second)

        async def nothing_open(_worker_id):
            return None

        ledger_b.find_open_session = nothing_open
        with pytest.raises(AlreadyCheckedInError):
            await AttendanceStateMachine(ledger_b).check_in("w1", now=T0 + timedelta(seconds=1))

    async with database.session() as check:
        assert await _count(check, "w1") == 1


def test_compute_total_hours():
    assert compute_total_hours(T0, T0 + timedelta(hours=8, minutes=30)) == 8.5
    assert compute_total_hours(T0, T0) == 0.0
    # Naive timestamps (SQLite) are read as UTC
    assert compute_total_hours(T0.replace(tzinfo=None), T0 + timedelta(minutes=90)) == 1.5
    with pytest.raises(SessionDataError):
        compute_total_hours(T0, T0 - timedelta(seconds=1))


@pytest.mark.asyncio
async def test_inactive_worker_cannot_be_checked_in(machine, db_session):
    await add_worker(db_session, "w9", status="inactive")
    with pytest.raises(AuthorizationError):
        await machine.check_in("w9", now=T0)
    assert await _count(db_session, "w9") == 0


@pytest.mark.asyncio
async def test_deactivated_worker_open_session_can_still_be_closed(machine, db_session, worker):
    await machine.check_in("w1", now=T0)
    worker.status = "inactive"
    await db_session.commit()

    result = await machine.check_out("w1", now=T0 + timedelta(hours=3))
    assert result.total_hours == Decimal("3.00")
