"""
Catalog store - read access to venues, events and seat layouts
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.models import Event, Seat


class CatalogStore:
    """Reference data reads bound to one session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_events(self) -> List[Event]:
        result = await self.db.execute(select(Event).order_by(Event.date.asc()))
        return list(result.scalars().all())

    async def get_event(self, event_id: str) -> Optional[Event]:
        return await self.db.get(Event, event_id)

    async def get_seat(self, seat_id: str) -> Optional[Seat]:
        return await self.db.get(Seat, seat_id)

    async def list_seats_for_venue(self, venue_id: str) -> List[Seat]:
        query = (
            select(Seat)
            .where(Seat.venue_id == venue_id)
            .order_by(Seat.section, Seat.row, Seat.number)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def lock_seats(self, venue_id: str, seat_ids: Iterable[str]) -> Dict[str, Seat]:
        """
        Load the requested seats of a venue and row-lock them in id order.

        Locking in a fixed order keeps two overlapping selections from
        deadlocking each other. Unknown ids are simply absent from the result.
        """
        ids = sorted(set(seat_ids))
        if not ids:
            return {}
        query = (
            select(Seat)
            .where(Seat.id.in_(ids), Seat.venue_id == venue_id)
            .order_by(Seat.id)
            .with_for_update()
        )
        result = await self.db.execute(query)
        return {seat.id: seat for seat in result.scalars().all()}
