"""
Pydantic schemas for Event resources
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventResponse(BaseModel):
    """Event response schema"""
    id: str
    venue_id: str
    title: str = Field(..., description="Event title")
    description: Optional[str] = None
    date: datetime = Field(..., description="Event start time")
    on_sale_date: Optional[datetime] = Field(None, description="Purchases open at this time")
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EventListResponse(BaseModel):
    """Response schema for listing events"""
    events: list[EventResponse]
    total: int
