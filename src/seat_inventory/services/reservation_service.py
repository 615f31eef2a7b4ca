"""
Reservation manager - time-boxed holds, one selection per (user, event)
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core import metrics
from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.core.config import settings
from seat_inventory.services.catalog import CatalogStore
from seat_inventory.services.errors import NotFoundError, SeatUnavailableError, ValidationError
from seat_inventory.services.inventory_store import SeatInventoryStore
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoldResult:
    event_id: str
    seat_ids: List[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None


def normalize_selection(seat_ids: Sequence[str], max_seats: Optional[int] = None) -> List[str]:
    """Validate a seat selection: non-empty, no duplicates, within the order cap"""
    if not seat_ids:
        raise ValidationError("At least one seat must be selected")
    if any(not seat_id for seat_id in seat_ids):
        raise ValidationError("Seat ids must not be empty")
    if len(set(seat_ids)) != len(seat_ids):
        raise ValidationError("Seat selection contains duplicates")
    if max_seats is not None and len(seat_ids) > max_seats:
        raise ValidationError(f"Cannot select more than {max_seats} seats at once")
    return list(seat_ids)


class ReservationManager:
    """
    Holds are first-writer-wins: a seat held live by someone else rejects
    the whole selection immediately. Nothing is queued or retried.
    """

    def __init__(
        self,
        clock: Clock = utcnow,
        hold_duration: Optional[timedelta] = None,
        max_seats: Optional[int] = None,
    ):
        self.clock = clock
        self.hold_duration = hold_duration or timedelta(minutes=settings.HOLD_DURATION_MINUTES)
        self.max_seats = max_seats or settings.MAX_SEATS_PER_ORDER

    async def reserve(
        self,
        db: AsyncSession,
        user_id: str,
        event_id: str,
        seat_ids: Sequence[str],
        ttl: Optional[timedelta] = None,
    ) -> HoldResult:
        """
        Replace the user's selection for this event with `seat_ids`.

        The previous selection is cleared before the new one is checked. When
        any requested seat is unavailable the clear still stands: the user
        leaves with no holds for the event and SeatUnavailableError names the
        blocked seats.
        """
        seat_ids = normalize_selection(seat_ids, self.max_seats)
        ttl = ttl or self.hold_duration

        unavailable: List[str] = []
        holds = []
        async with db.begin():
            catalog = CatalogStore(db)
            event = await catalog.get_event(event_id)
            if event is None:
                raise NotFoundError(f"Event {event_id} not found")

            seats = await catalog.lock_seats(event.venue_id, seat_ids)
            missing = [seat_id for seat_id in seat_ids if seat_id not in seats]
            if missing:
                raise NotFoundError(f"Seats {', '.join(missing)} do not belong to this event")

            store = SeatInventoryStore(db, self.clock)
            await store.sweep_expired_reservations()
            await store.delete_reservations_for(user_id, event_id)

            statuses = await store.get_seat_status(event_id, seat_ids, user_id)
            unavailable = [seat_id for seat_id in seat_ids if statuses[seat_id].blocks]

            if not unavailable:
                for seat_id in seat_ids:
                    holds.append(await store.upsert_reservation(seat_id, event_id, user_id, ttl))

        if unavailable:
            metrics.record_conflict("reserve")
            logger.warning(
                "Reservation rejected: seats unavailable",
                extra={'user_id': user_id, 'event_id': event_id, 'seat_ids': unavailable},
            )
            raise SeatUnavailableError(unavailable)

        metrics.reservations_created_total.inc(len(holds))
        logger.info(
            f"Held {len(holds)} seats",
            extra={'user_id': user_id, 'event_id': event_id, 'seat_ids': seat_ids},
        )
        return HoldResult(
            event_id=event_id,
            seat_ids=[hold.seat_id for hold in holds],
            expires_at=holds[0].expires_at,
        )

    async def release(self, db: AsyncSession, user_id: str, event_id: str) -> int:
        """Drop every hold this user has for the event. Safe to call repeatedly."""
        async with db.begin():
            store = SeatInventoryStore(db, self.clock)
            released = await store.delete_reservations_for(user_id, event_id)

        if released:
            metrics.reservations_released_total.inc(released)
            logger.info(
                f"Released {released} holds",
                extra={'user_id': user_id, 'event_id': event_id},
            )
        return released

    async def current_holds(self, db: AsyncSession, user_id: str, event_id: str) -> HoldResult:
        async with db.begin():
            store = SeatInventoryStore(db, self.clock)
            holds = await store.live_reservations_for(user_id, event_id)

        if not holds:
            return HoldResult(event_id=event_id)
        return HoldResult(
            event_id=event_id,
            seat_ids=[hold.seat_id for hold in holds],
            expires_at=min(hold.expires_at for hold in holds),
        )
