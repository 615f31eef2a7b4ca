"""
Business logic services
"""
from seat_inventory.services.errors import (
    InventoryError,
    ValidationError,
    GroupSizeMismatchError,
    AuthError,
    ForbiddenError,
    NotOnSaleYetError,
    NotFoundError,
    ConflictError,
    SeatUnavailableError,
)
from seat_inventory.services.seat_status import SeatStatus, resolve_seat_status
from seat_inventory.services.catalog import CatalogStore
from seat_inventory.services.inventory_store import SeatInventoryStore
from seat_inventory.services.availability import AvailabilityResolver
from seat_inventory.services.reservation_service import ReservationManager, HoldResult, normalize_selection
from seat_inventory.services.purchase_service import PurchaseEngine, PurchaseResult, validate_payment
from seat_inventory.services.marketplace_service import Marketplace
from seat_inventory.services.group_service import GroupPurchaseEngine, assign_seats
from seat_inventory.services.expiry_worker import ExpiryWorker

__all__ = [
    # Errors
    "InventoryError",
    "ValidationError",
    "GroupSizeMismatchError",
    "AuthError",
    "ForbiddenError",
    "NotOnSaleYetError",
    "NotFoundError",
    "ConflictError",
    "SeatUnavailableError",
    # Store and status
    "SeatStatus",
    "resolve_seat_status",
    "CatalogStore",
    "SeatInventoryStore",
    # Components
    "AvailabilityResolver",
    "ReservationManager",
    "HoldResult",
    "normalize_selection",
    "PurchaseEngine",
    "PurchaseResult",
    "validate_payment",
    "Marketplace",
    "GroupPurchaseEngine",
    "assign_seats",
    "ExpiryWorker",
]
