"""
Purchase engine - converts a seat selection into purchase rows, all or nothing
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core import metrics
from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.core.config import settings
from seat_inventory.models import PaymentMethod, Purchase
from seat_inventory.services.catalog import CatalogStore
from seat_inventory.services.errors import (
    NotFoundError,
    NotOnSaleYetError,
    SeatUnavailableError,
    ValidationError,
)
from seat_inventory.services.inventory_store import SeatInventoryStore
from seat_inventory.services.reservation_service import normalize_selection
import logging

logger = logging.getLogger(__name__)


@dataclass
class PurchaseResult:
    purchases: List[Purchase] = field(default_factory=list)
    total_price: Decimal = Decimal("0.00")
    payment_method: Optional[PaymentMethod] = None


def validate_payment(payment) -> None:
    """Structural check only; nothing is charged"""
    if payment is None:
        raise ValidationError("Payment information is required")
    missing = payment.missing_fields()
    if missing:
        raise ValidationError(f"Missing payment fields: {', '.join(missing)}")
    if len(payment.card_digits) < 4:
        raise ValidationError("Card number is invalid")


class PurchaseEngine:
    """Primary sales. Group purchases reuse `commit_purchase` inside their own transaction."""

    def __init__(self, clock: Clock = utcnow, max_seats: Optional[int] = None):
        self.clock = clock
        self.max_seats = max_seats or settings.MAX_SEATS_PER_ORDER

    @metrics.track_time(metrics.purchase_duration_seconds)
    async def purchase(
        self,
        db: AsyncSession,
        user_id: str,
        event_id: str,
        seat_ids: Sequence[str],
        payment,
    ) -> PurchaseResult:
        validate_payment(payment)
        seat_ids = normalize_selection(seat_ids, self.max_seats)

        try:
            async with db.begin():
                result = await self.commit_purchase(db, user_id, event_id, seat_ids, payment)
        except SeatUnavailableError as e:
            metrics.record_conflict("purchase")
            logger.warning(
                "Purchase rejected: seats unavailable",
                extra={'user_id': user_id, 'event_id': event_id, 'seat_ids': e.seat_ids},
            )
            raise

        metrics.record_sale("primary", len(result.purchases))
        logger.info(
            f"Purchased {len(result.purchases)} seats for {result.total_price}",
            extra={'user_id': user_id, 'event_id': event_id, 'seat_ids': seat_ids},
        )
        return result

    async def commit_purchase(
        self,
        db: AsyncSession,
        user_id: str,
        event_id: str,
        seat_ids: Sequence[str],
        payment,
    ) -> PurchaseResult:
        """
        Must run inside the caller's transaction. Any error raised here
        leaves the transaction to roll back, so no seat is ever sold alone.
        """
        now = self.clock()
        catalog = CatalogStore(db)

        event = await catalog.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        if not event.is_on_sale(now):
            raise NotOnSaleYetError(f"Tickets go on sale at {event.on_sale_date.isoformat()}")

        seats = await catalog.lock_seats(event.venue_id, seat_ids)
        missing = [seat_id for seat_id in seat_ids if seat_id not in seats]
        if missing:
            raise NotFoundError(f"Seats {', '.join(missing)} do not belong to this event")

        store = SeatInventoryStore(db, self.clock)
        await store.sweep_expired_reservations()

        # a hold by this user is fine; it is consumed below
        statuses = await store.get_seat_status(event_id, seat_ids, user_id)
        unavailable = [seat_id for seat_id in seat_ids if statuses[seat_id].blocks]
        if unavailable:
            raise SeatUnavailableError(unavailable)

        result = PurchaseResult()
        for seat_id in seat_ids:
            price = seats[seat_id].price
            result.purchases.append(await store.insert_purchase(user_id, event_id, seat_id, price))
            result.total_price += price

        if payment is not None and payment.save_payment_info:
            result.payment_method = await store.save_payment_method(user_id, payment)

        await store.delete_reservations_for(user_id, event_id)
        return result

    async def list_purchases(self, db: AsyncSession, user_id: str) -> List[Purchase]:
        async with db.begin():
            return await SeatInventoryStore(db, self.clock).list_purchases_for_user(user_id)

    async def list_payment_methods(self, db: AsyncSession, user_id: str) -> List[PaymentMethod]:
        async with db.begin():
            return await SeatInventoryStore(db, self.clock).list_payment_methods(user_id)
