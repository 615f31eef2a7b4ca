"""
Reservations API endpoints - place, inspect and release seat holds
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.database import get_db
from seat_inventory.core.security import get_current_user_id
from seat_inventory.middleware.rate_limiter import limiter, RESERVE_LIMIT
from seat_inventory.schemas import ReservationCreate, ReservationResponse

router = APIRouter()


@router.post("/events/{event_id}/reservations", response_model=ReservationResponse, status_code=201)
@limiter.limit(RESERVE_LIMIT)
async def reserve_seats(
    request: Request,
    event_id: str,
    body: ReservationCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Hold seats for the caller

    Replaces any earlier selection for this event. On 409 the earlier
    selection is gone as well; refresh the seat map and pick again.
    """
    hold = await request.app.state.reservations.reserve(db, user_id, event_id, body.seat_ids)
    return ReservationResponse.from_hold(hold, request.app.state.clock())


@router.get("/events/{event_id}/reservations", response_model=ReservationResponse)
async def get_reservations(
    request: Request,
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    hold = await request.app.state.reservations.current_holds(db, user_id, event_id)
    return ReservationResponse.from_hold(hold, request.app.state.clock())


@router.delete("/events/{event_id}/reservations", status_code=204)
async def release_reservations(
    request: Request,
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Release every hold the caller has for this event (idempotent)"""
    await request.app.state.reservations.release(db, user_id, event_id)
