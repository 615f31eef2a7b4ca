"""
Events API endpoints - catalog reads and the seat map
"""
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.database import get_db
from seat_inventory.core.security import get_optional_user_id
from seat_inventory.schemas import EventResponse, EventListResponse, SeatMapResponse
from seat_inventory.services import CatalogStore, NotFoundError

router = APIRouter()


@router.get("/events", response_model=EventListResponse)
async def list_events(db: AsyncSession = Depends(get_db)):
    """List all events, soonest first"""
    async with db.begin():
        events = await CatalogStore(db).list_events()
    return EventListResponse(
        events=[EventResponse.model_validate(event) for event in events],
        total=len(events),
    )


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db: AsyncSession = Depends(get_db)):
    async with db.begin():
        event = await CatalogStore(db).get_event(event_id)
    if event is None:
        raise NotFoundError(f"Event {event_id} not found")
    return EventResponse.model_validate(event)


@router.get("/events/{event_id}/seats", response_model=SeatMapResponse)
async def get_seat_map(
    request: Request,
    event_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Seat map with every seat's status for the caller

    Anonymous callers never see `reserved_by_self`; send a bearer token to
    tell your own holds apart from other users'.
    """
    entries = await request.app.state.availability.seat_map(db, event_id, user_id)
    return SeatMapResponse.from_entries(event_id, entries)
