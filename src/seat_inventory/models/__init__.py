"""
SQLAlchemy models for the seat inventory service

Import all models here for easy access and to ensure proper relationship setup.
"""
from seat_inventory.core.database import Base

from seat_inventory.models.venue import Venue, Seat, seat_price
from seat_inventory.models.event import Event
from seat_inventory.models.purchase import Purchase, PaymentMethod
from seat_inventory.models.reservation import Reservation, is_live
from seat_inventory.models.marketplace import MarketplaceListing, ListingStatus
from seat_inventory.models.group import GroupPurchase, GroupMember, GroupStatus, MemberStatus

__all__ = [
    "Base",
    "Venue",
    "Seat",
    "seat_price",
    "Event",
    "Purchase",
    "PaymentMethod",
    "Reservation",
    "is_live",
    "MarketplaceListing",
    "ListingStatus",
    "GroupPurchase",
    "GroupMember",
    "GroupStatus",
    "MemberStatus",
]
