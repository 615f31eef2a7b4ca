"""Pydantic schemas for seat holds"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReservationCreate(BaseModel):
    seat_ids: List[str] = Field(..., min_length=1)


class ReservationResponse(BaseModel):
    event_id: str
    seat_ids: List[str]
    expires_at: Optional[datetime] = None
    time_remaining_seconds: int = 0

    @classmethod
    def from_hold(cls, hold, now: datetime):
        """Convert a HoldResult to response"""
        remaining = 0
        if hold.expires_at is not None:
            remaining = max(0, int((hold.expires_at - now).total_seconds()))
        return cls(
            event_id=hold.event_id,
            seat_ids=list(hold.seat_ids),
            expires_at=hold.expires_at,
            time_remaining_seconds=remaining,
        )
