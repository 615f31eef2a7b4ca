"""
Seat inventory store - all reads and writes of purchases, holds and listings

A store is bound to one session and is only used inside the caller's
transaction; it never commits. Uniqueness is enforced by the schema
(see models), and constraint violations surface here as domain errors.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.core import metrics
from seat_inventory.models import (
    ListingStatus,
    MarketplaceListing,
    PaymentMethod,
    Purchase,
    Reservation,
    is_live,
)
from seat_inventory.services.errors import ConflictError, NotFoundError, SeatUnavailableError
from seat_inventory.services.seat_status import SeatStatus, resolve_seat_status
import logging

logger = logging.getLogger(__name__)


class SeatInventoryStore:
    """Durable seat state for one transaction"""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    @property
    def now(self) -> datetime:
        return self.clock()

    # ==================== Status ====================

    async def get_seat_status(
        self,
        event_id: str,
        seat_ids: Iterable[str],
        user_id: Optional[str] = None,
    ) -> Dict[str, SeatStatus]:
        ids = list(dict.fromkeys(seat_ids))
        if not ids:
            return {}

        purchases = await self._by_seat(
            select(Purchase).where(Purchase.event_id == event_id, Purchase.seat_id.in_(ids))
        )
        listings = await self._by_seat(
            select(MarketplaceListing).where(
                MarketplaceListing.event_id == event_id,
                MarketplaceListing.seat_id.in_(ids),
                MarketplaceListing.status == ListingStatus.ACTIVE,
            )
        )
        reservations = await self._by_seat(
            select(Reservation).where(Reservation.event_id == event_id, Reservation.seat_id.in_(ids))
        )

        now = self.now
        return {
            seat_id: resolve_seat_status(
                purchases.get(seat_id),
                listings.get(seat_id),
                reservations.get(seat_id),
                user_id,
                now,
            )
            for seat_id in ids
        }

    async def _by_seat(self, query) -> dict:
        result = await self.db.execute(query)
        return {row.seat_id: row for row in result.scalars().all()}

    # ==================== Purchases ====================

    async def get_purchase(self, purchase_id: str) -> Optional[Purchase]:
        return await self.db.get(Purchase, purchase_id)

    async def get_purchase_for_seat(self, event_id: str, seat_id: str, for_update: bool = False) -> Optional[Purchase]:
        query = select(Purchase).where(Purchase.event_id == event_id, Purchase.seat_id == seat_id)
        if for_update:
            # serializes with transfer_purchase on the same row
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_purchases_for_user(self, user_id: str) -> List[Purchase]:
        query = (
            select(Purchase)
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.purchase_date.desc(), Purchase.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def insert_purchase(
        self,
        user_id: str,
        event_id: str,
        seat_id: str,
        price: Decimal,
    ) -> Purchase:
        """
        Write a purchase row. A concurrent buyer who committed first makes
        the unique (event_id, seat_id) constraint fail here.
        """
        purchase = Purchase(
            user_id=user_id,
            event_id=event_id,
            seat_id=seat_id,
            price=price,
            purchase_date=self.now,
        )
        self.db.add(purchase)
        try:
            await self.db.flush()
        except IntegrityError:
            raise SeatUnavailableError([seat_id], "Seat already purchased")
        return purchase

    async def transfer_purchase(
        self,
        purchase_id: str,
        new_buyer_id: str,
        expected_owner_id: Optional[str] = None,
    ) -> Purchase:
        """Move ownership in place so the per-seat purchase stays unique"""
        purchase = await self.get_purchase(purchase_id)
        if purchase is None:
            raise NotFoundError(f"Purchase {purchase_id} not found")

        query = update(Purchase).where(Purchase.id == purchase_id)
        if expected_owner_id is not None:
            query = query.where(Purchase.user_id == expected_owner_id)
        result = await self.db.execute(
            query.values(user_id=new_buyer_id).execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != 1:
            raise ConflictError("Ticket ownership changed during transfer")

        await self.db.refresh(purchase)
        return purchase

    # ==================== Reservations ====================

    async def sweep_expired_reservations(self) -> int:
        """Delete every hold whose expiry has passed"""
        result = await self.db.execute(
            delete(Reservation)
            .where(Reservation.expires_at <= self.now)
            .execution_options(synchronize_session="evaluate")
        )
        swept = result.rowcount or 0
        if swept:
            metrics.reservations_expired_total.inc(swept)
            logger.info(f"Swept {swept} expired reservations")
        return swept

    async def upsert_reservation(
        self,
        seat_id: str,
        event_id: str,
        user_id: str,
        ttl: timedelta,
    ) -> Reservation:
        """
        Hold a seat for `ttl`. Refreshes the caller's own hold or replaces an
        expired one; a live hold by anyone else is a conflict.
        """
        now = self.now
        existing = await self.db.get(
            Reservation, (seat_id, event_id), with_for_update=True, populate_existing=True
        )

        if existing is not None:
            if is_live(existing, now) and existing.user_id != user_id:
                raise SeatUnavailableError([seat_id], "Seat is held by another user")
            existing.user_id = user_id
            existing.expires_at = now + ttl
            existing.created_at = now
            await self.db.flush()
            return existing

        reservation = Reservation(
            seat_id=seat_id,
            event_id=event_id,
            user_id=user_id,
            expires_at=now + ttl,
            created_at=now,
        )
        self.db.add(reservation)
        try:
            await self.db.flush()
        except IntegrityError:
            raise SeatUnavailableError([seat_id], "Seat is held by another user")
        return reservation

    async def delete_reservations_for(self, user_id: str, event_id: str) -> int:
        result = await self.db.execute(
            delete(Reservation)
            .where(Reservation.user_id == user_id, Reservation.event_id == event_id)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount or 0

    async def live_reservations_for(self, user_id: str, event_id: str) -> List[Reservation]:
        query = (
            select(Reservation)
            .where(
                Reservation.user_id == user_id,
                Reservation.event_id == event_id,
                Reservation.expires_at > self.now,
            )
            .order_by(Reservation.seat_id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ==================== Marketplace ====================

    async def get_listing(self, listing_id: str, for_update: bool = False) -> Optional[MarketplaceListing]:
        return await self.db.get(
            MarketplaceListing, listing_id, with_for_update=for_update, populate_existing=True
        )

    async def list_active_listings(self, event_id: Optional[str] = None) -> List[MarketplaceListing]:
        query = select(MarketplaceListing).where(MarketplaceListing.status == ListingStatus.ACTIVE)
        if event_id:
            query = query.where(MarketplaceListing.event_id == event_id)
        result = await self.db.execute(query.order_by(MarketplaceListing.created_at.desc()))
        return list(result.scalars().all())

    async def insert_listing(
        self,
        seller_id: str,
        purchase: Purchase,
        list_price: Decimal,
    ) -> MarketplaceListing:
        listing = MarketplaceListing(
            seller_id=seller_id,
            event_id=purchase.event_id,
            seat_id=purchase.seat_id,
            purchase_id=purchase.id,
            list_price=list_price,
            status=ListingStatus.ACTIVE,
            created_at=self.now,
        )
        self.db.add(listing)
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError("This seat already has an active listing")
        return listing

    async def close_listing(
        self,
        listing_id: str,
        status: ListingStatus,
        buyer_id: Optional[str] = None,
    ) -> bool:
        """Move an active listing to sold/removed; False if it was no longer active"""
        values = {"status": status}
        if status == ListingStatus.SOLD:
            values.update(buyer_id=buyer_id, sold_at=self.now)
        result = await self.db.execute(
            update(MarketplaceListing)
            .where(
                MarketplaceListing.id == listing_id,
                MarketplaceListing.status == ListingStatus.ACTIVE,
            )
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    # ==================== Payment methods ====================

    async def save_payment_method(self, user_id: str, payment) -> PaymentMethod:
        """Persist the card holder details and the last four digits only"""
        method = PaymentMethod(
            user_id=user_id,
            cardholder_name=payment.cardholder_name.strip(),
            last_four_digits=payment.last_four_digits,
            expiry_date=payment.expiry_date.strip(),
            billing_address=payment.billing_address.strip(),
            billing_city=payment.billing_city.strip(),
            billing_state=payment.billing_state.strip(),
            billing_zip=payment.billing_zip.strip(),
            created_at=self.now,
        )
        self.db.add(method)
        await self.db.flush()
        return method

    async def list_payment_methods(self, user_id: str) -> List[PaymentMethod]:
        query = (
            select(PaymentMethod)
            .where(PaymentMethod.user_id == user_id)
            .order_by(PaymentMethod.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
