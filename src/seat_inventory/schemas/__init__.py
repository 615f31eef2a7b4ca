"""
Pydantic schemas for API request/response validation
"""
from seat_inventory.schemas.event import EventResponse, EventListResponse
from seat_inventory.schemas.seat import SeatAvailabilityResponse, SeatMapResponse
from seat_inventory.schemas.payment import PaymentInfo, PaymentMethodResponse, PaymentMethodListResponse
from seat_inventory.schemas.reservation import ReservationCreate, ReservationResponse
from seat_inventory.schemas.purchase import (
    PurchaseCreate,
    PurchaseResponse,
    PurchaseResultResponse,
    PurchaseListResponse,
)
from seat_inventory.schemas.marketplace import (
    ListingCreate,
    ListingPurchase,
    ListingResponse,
    ListingListResponse,
)
from seat_inventory.schemas.group import (
    GroupCreate,
    GroupInvite,
    GroupPrepay,
    GroupPurchaseRequest,
    GroupMemberResponse,
    GroupResponse,
    GroupListResponse,
)

__all__ = [
    # Events
    "EventResponse",
    "EventListResponse",
    # Seats
    "SeatAvailabilityResponse",
    "SeatMapResponse",
    # Payment
    "PaymentInfo",
    "PaymentMethodResponse",
    "PaymentMethodListResponse",
    # Reservations
    "ReservationCreate",
    "ReservationResponse",
    # Purchases
    "PurchaseCreate",
    "PurchaseResponse",
    "PurchaseResultResponse",
    "PurchaseListResponse",
    # Marketplace
    "ListingCreate",
    "ListingPurchase",
    "ListingResponse",
    "ListingListResponse",
    # Groups
    "GroupCreate",
    "GroupInvite",
    "GroupPrepay",
    "GroupPurchaseRequest",
    "GroupMemberResponse",
    "GroupResponse",
    "GroupListResponse",
]
