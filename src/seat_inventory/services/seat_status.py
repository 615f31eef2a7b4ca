"""
Seat status composition - the single answer to "what state is this seat in?"

Every caller (seat map, reserve, purchase) goes through `resolve_seat_status`
so that holds, sales and resale listings are composed the same way everywhere.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from seat_inventory.models import MarketplaceListing, Purchase, Reservation, is_live


class SeatStatus(str, Enum):
    FREE = "free"
    RESERVED_BY_SELF = "reserved_by_self"
    RESERVED_BY_OTHER = "reserved_by_other"
    PURCHASED = "purchased"
    MARKETPLACE_ACTIVE = "marketplace_active"

    @property
    def blocks(self) -> bool:
        """Whether this status keeps the caller from holding or buying the seat"""
        return self not in (SeatStatus.FREE, SeatStatus.RESERVED_BY_SELF)


def resolve_seat_status(
    purchase: Optional[Purchase],
    listing: Optional[MarketplaceListing],
    reservation: Optional[Reservation],
    user_id: Optional[str],
    now: datetime,
) -> SeatStatus:
    """
    Sold beats everything; a sold seat with an active resale listing reports
    marketplace_active. Otherwise a live hold is reported relative to the
    caller, and anything else is free.
    """
    if purchase is not None:
        if listing is not None and listing.is_active:
            return SeatStatus.MARKETPLACE_ACTIVE
        return SeatStatus.PURCHASED

    if is_live(reservation, now):
        if user_id is not None and reservation.user_id == user_id:
            return SeatStatus.RESERVED_BY_SELF
        return SeatStatus.RESERVED_BY_OTHER

    return SeatStatus.FREE
