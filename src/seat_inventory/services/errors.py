"""
Domain errors raised by the inventory services.

Every error carries a stable code and a user-safe message; the API layer
maps each class to an HTTP status in one place.
"""
from enum import Enum
from typing import Iterable, List, Optional


class ErrorCode(Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    GROUP_SIZE_MISMATCH = "GROUP_SIZE_MISMATCH"
    AUTH_ERROR = "AUTH_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_ON_SALE_YET = "NOT_ON_SALE_YET"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SEAT_UNAVAILABLE = "SEAT_UNAVAILABLE"


class InventoryError(Exception):
    """Base exception for seat inventory errors"""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict:
        return {"error": self.code.value, "message": self.message}


class ValidationError(InventoryError):
    """Missing or malformed input; the client must fix it before resending"""

    code = ErrorCode.VALIDATION_ERROR


class GroupSizeMismatchError(ValidationError):
    """Group purchase seat count differs from joined members plus the leader"""

    code = ErrorCode.GROUP_SIZE_MISMATCH

    def __init__(self, expected: int, received: int):
        super().__init__(
            f"Group purchase needs exactly {expected} seats (joined members + leader), got {received}"
        )
        self.expected = expected
        self.received = received

    def to_dict(self) -> dict:
        body = super().to_dict()
        body.update(expected=self.expected, received=self.received)
        return body


class AuthError(InventoryError):
    """Invalid or expired credential"""

    code = ErrorCode.AUTH_ERROR


class ForbiddenError(InventoryError):
    """Caller is authenticated but not allowed to do this"""

    code = ErrorCode.FORBIDDEN


class NotOnSaleYetError(InventoryError):
    """Event has an on-sale date in the future"""

    code = ErrorCode.NOT_ON_SALE_YET


class NotFoundError(InventoryError):
    """Referenced entity does not exist"""

    code = ErrorCode.NOT_FOUND


class ConflictError(InventoryError):
    """Request lost against current state (listing already sold, group completed...)"""

    code = ErrorCode.CONFLICT


class SeatUnavailableError(ConflictError):
    """One or more seats are sold or held by another user"""

    code = ErrorCode.SEAT_UNAVAILABLE

    def __init__(self, seat_ids: Iterable[str], message: Optional[str] = None):
        self.seat_ids: List[str] = sorted(set(seat_ids))
        super().__init__(message or f"Seats not available: {', '.join(self.seat_ids)}")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["unavailable_seats"] = self.seat_ids
        return body
