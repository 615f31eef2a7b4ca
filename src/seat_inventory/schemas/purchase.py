"""Pydantic schemas for Purchase resources"""
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from seat_inventory.schemas.payment import PaymentInfo


class PurchaseCreate(BaseModel):
    event_id: str
    seat_ids: List[str] = Field(..., min_length=1)
    payment_info: PaymentInfo = Field(default_factory=PaymentInfo)


class PurchaseResponse(BaseModel):
    id: str
    user_id: str
    event_id: str
    seat_id: str
    price: Decimal
    purchase_date: datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseResultResponse(BaseModel):
    purchases: List[PurchaseResponse]
    total_price: Decimal

    @classmethod
    def from_result(cls, result):
        return cls(
            purchases=[PurchaseResponse.model_validate(p) for p in result.purchases],
            total_price=result.total_price,
        )


class PurchaseListResponse(BaseModel):
    purchases: List[PurchaseResponse]
    total: int
