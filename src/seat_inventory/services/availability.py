"""
Availability resolver - seat-map and status reads over fresh store state
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.models import Seat
from seat_inventory.services.catalog import CatalogStore
from seat_inventory.services.errors import NotFoundError
from seat_inventory.services.inventory_store import SeatInventoryStore
from seat_inventory.services.seat_status import SeatStatus


class AvailabilityResolver:
    """Sweeps expired holds, then resolves seats for the requesting identity"""

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock

    async def seat_map(
        self,
        db: AsyncSession,
        event_id: str,
        user_id: Optional[str] = None,
    ) -> List[dict]:
        """Every seat of the event's venue with price and resolved status"""
        async with db.begin():
            catalog = CatalogStore(db)
            event = await catalog.get_event(event_id)
            if event is None:
                raise NotFoundError(f"Event {event_id} not found")

            store = SeatInventoryStore(db, self.clock)
            await store.sweep_expired_reservations()

            seats = await catalog.list_seats_for_venue(event.venue_id)
            statuses = await store.get_seat_status(event_id, [s.id for s in seats], user_id)

        return [_seat_entry(seat, statuses[seat.id]) for seat in seats]

    async def get_seat_status(
        self,
        db: AsyncSession,
        event_id: str,
        seat_ids: Iterable[str],
        user_id: Optional[str] = None,
    ) -> Dict[str, SeatStatus]:
        async with db.begin():
            store = SeatInventoryStore(db, self.clock)
            await store.sweep_expired_reservations()
            return await store.get_seat_status(event_id, seat_ids, user_id)


def _seat_entry(seat: Seat, status: SeatStatus) -> dict:
    return {
        "id": seat.id,
        "section": seat.section,
        "row": seat.row,
        "number": seat.number,
        "price": seat.price,
        "x": seat.x,
        "y": seat.y,
        "seat_label": seat.seat_label,
        "status": status,
    }
