"""
Marketplace - resale of seats that already have a primary purchase
"""
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from seat_inventory.core import metrics
from seat_inventory.core.clock import Clock, utcnow
from seat_inventory.models import ListingStatus, MarketplaceListing
from seat_inventory.models.venue import CENTS
from seat_inventory.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from seat_inventory.services.inventory_store import SeatInventoryStore
from seat_inventory.services.purchase_service import validate_payment
import logging

logger = logging.getLogger(__name__)


def _list_price(price) -> Decimal:
    try:
        value = Decimal(str(price)).quantize(CENTS)
    except (InvalidOperation, ValueError):
        raise ValidationError("Listing price must be a number")
    if not value.is_finite():
        raise ValidationError("Listing price must be a number")
    if value <= 0:
        raise ValidationError("Listing price must be greater than zero")
    return value


class Marketplace:
    """
    A listing never creates a second purchase row. Selling one moves the
    existing purchase to the buyer and closes the listing in the same
    transaction.
    """

    def __init__(self, clock: Clock = utcnow):
        self.clock = clock

    async def list_for_sale(
        self,
        db: AsyncSession,
        seller_id: str,
        event_id: str,
        seat_id: str,
        price,
    ) -> MarketplaceListing:
        list_price = _list_price(price)

        async with db.begin():
            store = SeatInventoryStore(db, self.clock)
            purchase = await store.get_purchase_for_seat(event_id, seat_id, for_update=True)
            if purchase is None:
                raise NotFoundError(f"No purchase found for seat {seat_id}")
            if purchase.user_id != seller_id:
                raise ForbiddenError("Only the ticket owner can list this seat")
            listing = await store.insert_listing(seller_id, purchase, list_price)

        logger.info(
            f"Seat listed for {list_price}",
            extra={'user_id': seller_id, 'event_id': event_id, 'listing_id': listing.id},
        )
        return listing

    async def remove_listing(self, db: AsyncSession, seller_id: str, listing_id: str) -> MarketplaceListing:
        async with db.begin():
            store = SeatInventoryStore(db, self.clock)
            listing = await store.get_listing(listing_id, for_update=True)
            if listing is None:
                raise NotFoundError(f"Listing {listing_id} not found")
            if listing.seller_id != seller_id:
                raise ForbiddenError("Only the seller can remove this listing")
            if not await store.close_listing(listing_id, ListingStatus.REMOVED):
                raise ConflictError("Listing is no longer active")

        logger.info("Listing removed", extra={'user_id': seller_id, 'listing_id': listing_id})
        return listing

    async def purchase_listing(
        self,
        db: AsyncSession,
        buyer_id: str,
        listing_id: str,
        payment,
    ) -> MarketplaceListing:
        validate_payment(payment)

        try:
            async with db.begin():
                store = SeatInventoryStore(db, self.clock)
                listing = await store.get_listing(listing_id, for_update=True)
                if listing is None:
                    raise NotFoundError(f"Listing {listing_id} not found")
                if not listing.is_active:
                    raise ConflictError("Listing is no longer available")
                if listing.seller_id == buyer_id:
                    raise ValidationError("You cannot buy your own listing")

                if not await store.close_listing(listing_id, ListingStatus.SOLD, buyer_id):
                    raise ConflictError("Listing is no longer available")
                await store.transfer_purchase(
                    listing.purchase_id, buyer_id, expected_owner_id=listing.seller_id
                )
                if payment.save_payment_info:
                    await store.save_payment_method(buyer_id, payment)
        except ConflictError:
            metrics.record_conflict("marketplace")
            logger.warning(
                "Marketplace purchase lost",
                extra={'user_id': buyer_id, 'listing_id': listing_id},
            )
            raise

        metrics.record_sale("marketplace")
        logger.info(
            f"Listing sold for {listing.list_price}",
            extra={'user_id': buyer_id, 'event_id': listing.event_id, 'listing_id': listing_id},
        )
        return listing

    async def get_listing(self, db: AsyncSession, listing_id: str) -> MarketplaceListing:
        async with db.begin():
            listing = await SeatInventoryStore(db, self.clock).get_listing(listing_id)
        if listing is None:
            raise NotFoundError(f"Listing {listing_id} not found")
        return listing

    async def list_listings(self, db: AsyncSession, event_id: Optional[str] = None) -> List[MarketplaceListing]:
        async with db.begin():
            return await SeatInventoryStore(db, self.clock).list_active_listings(event_id)
