"""
Reservation manager - holds, replacement, exclusivity and expiry
"""
import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select

from seat_inventory.models import Reservation
from seat_inventory.services import (
    ExpiryWorker,
    NotFoundError,
    SeatStatus,
    SeatUnavailableError,
    ValidationError,
)

from helpers import EVENT_ID


async def held_seats(database, user_id=None):
    """Raw reservation rows, including expired ones"""
    async with database.session() as session:
        query = select(Reservation).where(Reservation.event_id == EVENT_ID)
        if user_id:
            query = query.where(Reservation.user_id == user_id)
        result = await session.execute(query.order_by(Reservation.seat_id))
        return [r.seat_id for r in result.scalars().all()]


@pytest.mark.asyncio
async def test_reserve_returns_common_expiry(db, reservations, clock):
    """Test every seat in a selection shares one expiry"""
    hold = await reservations.reserve(db, "alice", EVENT_ID, ["seat-3", "seat-4"])

    assert hold.seat_ids == ["seat-3", "seat-4"]
    assert hold.expires_at == clock.now + timedelta(minutes=15)


@pytest.mark.asyncio
async def test_new_selection_replaces_previous(db, database, reservations, availability):
    """Test reserving again supersedes the earlier holds instead of adding to them"""
    await reservations.reserve(db, "alice", EVENT_ID, ["seat-3", "seat-4"])
    await reservations.reserve(db, "alice", EVENT_ID, ["seat-5"])

    assert await held_seats(database, "alice") == ["seat-5"]

    statuses = await availability.get_seat_status(db, EVENT_ID, ["seat-3", "seat-5"], "alice")
    assert statuses["seat-3"] == SeatStatus.FREE
    assert statuses["seat-5"] == SeatStatus.RESERVED_BY_SELF


@pytest.mark.asyncio
async def test_reserving_own_seat_again_refreshes_expiry(db, reservations, clock):
    first = await reservations.reserve(db, "alice", EVENT_ID, ["seat-3"])
    clock.advance(minutes=5)
    second = await reservations.reserve(db, "alice", EVENT_ID, ["seat-3"])

    assert second.expires_at == first.expires_at + timedelta(minutes=5)


@pytest.mark.asyncio
async def test_seat_held_by_other_rejects_whole_batch(db, database, reservations):
    """Test a conflict on one seat rejects the batch and leaves the caller with no holds"""
    await reservations.reserve(db, "bob", EVENT_ID, ["seat-4"])
    await reservations.reserve(db, "alice", EVENT_ID, ["seat-1"])

    with pytest.raises(SeatUnavailableError) as exc_info:
        await reservations.reserve(db, "alice", EVENT_ID, ["seat-3", "seat-4"])

    assert exc_info.value.seat_ids == ["seat-4"]
    # the earlier selection was cleared before the check and stays cleared
    assert await held_seats(database, "alice") == []
    assert await held_seats(database, "bob") == ["seat-4"]


@pytest.mark.asyncio
async def test_expired_hold_is_taken_over(db, database, reservations, clock):
    """Test an expired hold left in the table does not block another user"""
    await reservations.reserve(db, "bob", EVENT_ID, ["seat-4"])
    clock.advance(minutes=15)

    # nothing has swept yet
    assert await held_seats(database, "bob") == ["seat-4"]

    hold = await reservations.reserve(db, "alice", EVENT_ID, ["seat-4"])
    assert hold.seat_ids == ["seat-4"]
    assert await held_seats(database) == ["seat-4"]
    assert await held_seats(database, "alice") == ["seat-4"]


@pytest.mark.asyncio
async def test_seat_map_reports_expired_hold_as_free(db, reservations, availability, clock):
    await reservations.reserve(db, "bob", EVENT_ID, ["seat-4"])
    clock.advance(minutes=15, seconds=1)

    seat_map = await availability.seat_map(db, EVENT_ID, "alice")
    statuses = {entry["id"]: entry["status"] for entry in seat_map}
    assert statuses["seat-4"] == SeatStatus.FREE


@pytest.mark.asyncio
async def test_concurrent_reservations_one_winner(reservations, race, database):
    """Test two users racing for the same seat: exactly one holds it"""
    results = await race(
        (reservations.reserve, "alice", EVENT_ID, ["seat-5", "seat-6"]),
        (reservations.reserve, "bob", EVENT_ID, ["seat-6", "seat-7"]),
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], SeatUnavailableError)
    assert losers[0].seat_ids == ["seat-6"]

    rows = await held_seats(database)
    assert rows.count("seat-6") == 1


@pytest.mark.asyncio
async def test_release_is_idempotent(db, database, reservations):
    await reservations.reserve(db, "alice", EVENT_ID, ["seat-3", "seat-4"])

    assert await reservations.release(db, "alice", EVENT_ID) == 2
    assert await reservations.release(db, "alice", EVENT_ID) == 0
    assert await held_seats(database) == []


@pytest.mark.asyncio
async def test_current_holds(db, reservations, clock):
    await reservations.reserve(db, "alice", EVENT_ID, ["seat-3"])

    holds = await reservations.current_holds(db, "alice", EVENT_ID)
    assert holds.seat_ids == ["seat-3"]
    assert holds.expires_at == clock.now + timedelta(minutes=15)

    clock.advance(minutes=16)
    holds = await reservations.current_holds(db, "alice", EVENT_ID)
    assert holds.seat_ids == []
    assert holds.expires_at is None


@pytest.mark.asyncio
@pytest.mark.parametrize("seat_ids", [[], ["seat-3", "seat-3"], [""]])
async def test_invalid_selection(db, reservations, seat_ids):
    with pytest.raises(ValidationError):
        await reservations.reserve(db, "alice", EVENT_ID, seat_ids)


@pytest.mark.asyncio
async def test_selection_over_cap(db, clock):
    from seat_inventory.services import ReservationManager

    manager = ReservationManager(clock=clock, max_seats=2)
    with pytest.raises(ValidationError):
        await manager.reserve(db, "alice", EVENT_ID, ["seat-3", "seat-4", "seat-5"])


@pytest.mark.asyncio
async def test_unknown_event_or_seat(db, reservations):
    with pytest.raises(NotFoundError):
        await reservations.reserve(db, "alice", "no-such-event", ["seat-3"])
    with pytest.raises(NotFoundError):
        await reservations.reserve(db, "alice", EVENT_ID, ["seat-3", "no-such-seat"])


@pytest.mark.asyncio
async def test_expiry_worker_sweeps_expired_rows(db, database, reservations, clock):
    """Test the background sweep only removes holds past their expiry"""
    await reservations.reserve(db, "bob", EVENT_ID, ["seat-4"])
    clock.advance(minutes=10)
    await reservations.reserve(db, "alice", EVENT_ID, ["seat-5"])
    clock.advance(minutes=6)

    worker = ExpiryWorker(database, clock=clock, interval=60)
    assert await worker.sweep_once() == 1
    assert await held_seats(database) == ["seat-5"]


@pytest.mark.asyncio
async def test_expiry_worker_keeps_running_after_error(database, clock):
    """Test an unexpected error in one sweep does not stop the loop"""
    worker = ExpiryWorker(database, clock=clock, interval=0.01)
    swept = asyncio.Event()
    calls = []

    async def flaky_sweep():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        swept.set()
        return 0

    worker.sweep_once = flaky_sweep
    await worker.start()
    try:
        await asyncio.wait_for(swept.wait(), timeout=2)
        assert not worker.task.done()
    finally:
        await worker.stop()

    assert len(calls) >= 2
