"""
Marketplace - listing rules and atomic ownership transfer
"""
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select

from seat_inventory.models import ListingStatus, MarketplaceListing, Purchase
from seat_inventory.schemas import ListingResponse
from seat_inventory.services import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SeatStatus,
    SeatUnavailableError,
    ValidationError,
)

from helpers import EVENT_ID


@pytest_asyncio.fixture
async def owned_seat(db, purchases, payment):
    result = await purchases.purchase(db, "seller", EVENT_ID, ["seat-3"], payment)
    return result.purchases[0]


async def load(database, model, key):
    async with database.session() as session:
        return await session.get(model, key)


@pytest.mark.asyncio
async def test_list_and_buy_transfers_purchase(db, database, marketplace, owned_seat, payment, clock):
    """Test a sale moves the existing purchase row to the buyer and closes the listing"""
    listing = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("120"))
    assert listing.status == ListingStatus.ACTIVE
    assert listing.list_price == Decimal("120.00")
    assert listing.purchase_id == owned_seat.id

    sold = await marketplace.purchase_listing(db, "buyer", listing.id, payment)
    assert sold.status == ListingStatus.SOLD
    assert sold.buyer_id == "buyer"
    assert sold.sold_at == clock.now

    purchase = await load(database, Purchase, owned_seat.id)
    assert purchase.user_id == "buyer"
    # resale does not rewrite the original sale price
    assert purchase.price == Decimal("50.00")

    async with database.session() as session:
        rows = (await session.execute(select(Purchase).where(Purchase.seat_id == "seat-3"))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_listed_seat_reports_marketplace_status(db, marketplace, availability, owned_seat):
    await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))

    statuses = await availability.get_seat_status(db, EVENT_ID, ["seat-3"], "someone")
    assert statuses["seat-3"] == SeatStatus.MARKETPLACE_ACTIVE


@pytest.mark.asyncio
async def test_listed_seat_cannot_be_bought_as_primary(db, marketplace, purchases, owned_seat, payment):
    await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))

    with pytest.raises(SeatUnavailableError):
        await purchases.purchase(db, "buyer", EVENT_ID, ["seat-3"], payment)


@pytest.mark.asyncio
async def test_only_owner_can_list(db, marketplace, owned_seat):
    with pytest.raises(ForbiddenError):
        await marketplace.list_for_sale(db, "stranger", EVENT_ID, "seat-3", Decimal("80"))


@pytest.mark.asyncio
async def test_unsold_seat_cannot_be_listed(db, marketplace):
    with pytest.raises(NotFoundError):
        await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-4", Decimal("80"))


@pytest.mark.asyncio
async def test_one_active_listing_per_seat(db, marketplace, owned_seat):
    await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))

    with pytest.raises(ConflictError):
        await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("90"))


@pytest.mark.asyncio
@pytest.mark.parametrize("price", [Decimal("0"), Decimal("-5"), "abc", "NaN", "Infinity"])
async def test_invalid_price(db, marketplace, owned_seat, price):
    with pytest.raises(ValidationError):
        await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", price)


@pytest.mark.asyncio
async def test_seller_cannot_buy_own_listing(db, database, marketplace, owned_seat, payment):
    listing_id = (await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))).id

    with pytest.raises(ValidationError):
        await marketplace.purchase_listing(db, "seller", listing_id, payment)

    stored = await load(database, MarketplaceListing, listing_id)
    assert stored.status == ListingStatus.ACTIVE


@pytest.mark.asyncio
async def test_sold_listing_cannot_be_bought_again(db, marketplace, owned_seat, payment):
    listing = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))
    await marketplace.purchase_listing(db, "buyer", listing.id, payment)

    with pytest.raises(ConflictError):
        await marketplace.purchase_listing(db, "late-buyer", listing.id, payment)


@pytest.mark.asyncio
async def test_new_owner_can_relist(db, marketplace, owned_seat, payment):
    """Test a sold listing no longer counts against the one-active-listing rule"""
    listing = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))
    await marketplace.purchase_listing(db, "buyer", listing.id, payment)

    relisted = await marketplace.list_for_sale(db, "buyer", EVENT_ID, "seat-3", Decimal("150"))
    assert relisted.seller_id == "buyer"
    assert relisted.id != listing.id


@pytest.mark.asyncio
async def test_concurrent_buyers_one_transfer(database, marketplace, db, owned_seat, payment, race):
    """Test buyers racing for one listing: one wins and the purchase and listing agree"""
    listing = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))

    results = await race(*[
        (marketplace.purchase_listing, f"buyer-{n}", listing.id, payment)
        for n in range(5)
    ])

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert all(isinstance(e, ConflictError) for e in losers)

    stored = await load(database, MarketplaceListing, listing.id)
    purchase = await load(database, Purchase, owned_seat.id)
    assert stored.status == ListingStatus.SOLD
    assert purchase.user_id == stored.buyer_id == winners[0].buyer_id


@pytest.mark.asyncio
async def test_remove_listing(db, database, marketplace, owned_seat, availability):
    listing_id = (await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))).id

    with pytest.raises(ForbiddenError):
        await marketplace.remove_listing(db, "stranger", listing_id)

    removed = await marketplace.remove_listing(db, "seller", listing_id)
    assert removed.status == ListingStatus.REMOVED

    with pytest.raises(ConflictError):
        await marketplace.remove_listing(db, "seller", listing_id)

    statuses = await availability.get_seat_status(db, EVENT_ID, ["seat-3"], "seller")
    assert statuses["seat-3"] == SeatStatus.PURCHASED
    assert await marketplace.list_listings(db, EVENT_ID) == []


@pytest.mark.asyncio
async def test_list_listings_filters_active(db, marketplace, purchases, payment):
    await purchases.purchase(db, "seller", EVENT_ID, ["seat-3", "seat-4"], payment)
    first = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))
    second = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-4", Decimal("90"))
    await marketplace.purchase_listing(db, "buyer", first.id, payment)

    active = await marketplace.list_listings(db, EVENT_ID)
    assert [listing.id for listing in active] == [second.id]


@pytest.mark.asyncio
async def test_relist_racing_a_sale_never_outlives_ownership(
    database, marketplace, db, owned_seat, payment, race
):
    """Test the seller relisting while their listing sells: no active listing is left behind"""
    listing = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))

    sold, relisted = await race(
        (marketplace.purchase_listing, "buyer", listing.id, payment),
        (marketplace.list_for_sale, "seller", EVENT_ID, "seat-3", Decimal("95")),
    )

    assert not isinstance(sold, Exception)
    assert isinstance(relisted, (ForbiddenError, ConflictError))

    purchase = await load(database, Purchase, owned_seat.id)
    assert purchase.user_id == "buyer"
    async with database.session() as session:
        assert await marketplace.list_listings(session, EVENT_ID) == []


@pytest.mark.asyncio
async def test_listing_response_reads_model_attributes(db, marketplace, owned_seat):
    listing = await marketplace.list_for_sale(db, "seller", EVENT_ID, "seat-3", Decimal("80"))

    response = ListingResponse.model_validate(listing)
    assert response.id == listing.id
    assert response.status == ListingStatus.ACTIVE
    assert response.list_price == Decimal("80.00")
