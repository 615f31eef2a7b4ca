"""Pydantic schemas for marketplace listings"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from seat_inventory.models.marketplace import ListingStatus
from seat_inventory.schemas.payment import PaymentInfo


class ListingCreate(BaseModel):
    event_id: str
    seat_id: str
    price: Decimal = Field(..., description="Asking price")


class ListingPurchase(BaseModel):
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)


class ListingResponse(BaseModel):
    id: str
    seller_id: str
    event_id: str
    seat_id: str
    purchase_id: str
    list_price: Decimal
    status: ListingStatus
    buyer_id: Optional[str] = None
    created_at: datetime
    sold_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ListingListResponse(BaseModel):
    listings: List[ListingResponse]
    total: int
