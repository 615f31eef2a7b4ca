"""
Pydantic schemas for seat availability
"""
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field

from seat_inventory.services.seat_status import SeatStatus


class SeatAvailabilityResponse(BaseModel):
    """One seat of the map with its resolved status for the caller"""
    id: str
    section: str
    row: str
    number: int
    price: Decimal = Field(..., description="basePrice x multiplier")
    x: int
    y: int
    seat_label: str
    status: SeatStatus


class SeatMapResponse(BaseModel):
    """Response schema for seat map"""
    event_id: str
    seats: List[SeatAvailabilityResponse]
    total_seats: int
    counts: Dict[str, int] = Field(
        default_factory=dict,
        description="Number of seats per status"
    )

    @classmethod
    def from_entries(cls, event_id: str, entries: List[dict]):
        counts = {status.value: 0 for status in SeatStatus}
        for entry in entries:
            counts[SeatStatus(entry["status"]).value] += 1
        return cls(
            event_id=event_id,
            seats=[SeatAvailabilityResponse(**entry) for entry in entries],
            total_seats=len(entries),
            counts=counts,
        )
