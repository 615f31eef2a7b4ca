"""Pydantic schemas for payment details"""
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

# cvv is checked for presence but never persisted
REQUIRED_PAYMENT_FIELDS = (
    "cardholder_name",
    "card_number",
    "expiry_date",
    "cvv",
    "billing_address",
    "billing_city",
    "billing_state",
    "billing_zip",
)


class PaymentInfo(BaseModel):
    """
    Card details as submitted by the client.

    Fields default to empty so that a missing field reaches the services and
    is reported as a domain validation error rather than a schema error.
    """
    cardholder_name: str = ""
    card_number: str = ""
    expiry_date: str = ""
    cvv: str = ""
    billing_address: str = ""
    billing_city: str = ""
    billing_state: str = ""
    billing_zip: str = ""
    save_payment_info: bool = False

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_PAYMENT_FIELDS if not str(getattr(self, name) or "").strip()]

    @property
    def card_digits(self) -> str:
        return "".join(ch for ch in self.card_number if ch.isdigit())

    @property
    def last_four_digits(self) -> str:
        return self.card_digits[-4:]


class PaymentMethodResponse(BaseModel):
    id: str
    cardholder_name: str
    last_four_digits: str
    expiry_date: str
    billing_address: str
    billing_city: str
    billing_state: str
    billing_zip: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentMethodListResponse(BaseModel):
    payment_methods: List[PaymentMethodResponse]
    total: int = Field(..., ge=0)
