import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from seat_inventory.core.database import Database
from seat_inventory.core.security import JWTIdentityProvider
from seat_inventory.main import create_app
from seat_inventory.middleware.rate_limiter import limiter
from seat_inventory.models import Event, Seat, Venue
from seat_inventory.schemas import PaymentInfo
from seat_inventory.services import (
    AvailabilityResolver,
    GroupPurchaseEngine,
    Marketplace,
    PurchaseEngine,
    ReservationManager,
)

from helpers import EVENT_ID, LATER_EVENT_ID, SEAT_IDS, VENUE_ID, FakeClock


@pytest.fixture
def clock():
    return FakeClock(datetime(2030, 6, 1, 12, 0, 0))


@pytest_asyncio.fixture
async def database(tmp_path, clock):
    """Fresh file-backed SQLite database with one venue, eight seats and two events"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}")
    await db.create_all()

    async with db.session() as session:
        async with session.begin():
            session.add(Venue(id=VENUE_ID, name="Test Arena", address="1 Main St", capacity=8))
            for number, seat_id in enumerate(SEAT_IDS, start=1):
                session.add(Seat(
                    id=seat_id,
                    venue_id=VENUE_ID,
                    section="A",
                    row="1",
                    number=number,
                    base_price=Decimal("50.00"),
                    # first two seats are premium
                    multiplier=Decimal("1.50") if number <= 2 else Decimal("1.00"),
                    x=number * 10,
                    y=10,
                ))
            session.add(Event(
                id=EVENT_ID,
                venue_id=VENUE_ID,
                title="Opening Night",
                date=clock.now + timedelta(days=30),
                on_sale_date=None,
            ))
            session.add(Event(
                id=LATER_EVENT_ID,
                venue_id=VENUE_ID,
                title="Closing Night",
                date=clock.now + timedelta(days=60),
                on_sale_date=clock.now + timedelta(days=1),
            ))

    yield db

    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture
async def db(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def availability(clock):
    return AvailabilityResolver(clock=clock)


@pytest.fixture
def reservations(clock):
    return ReservationManager(clock=clock, hold_duration=timedelta(minutes=15))


@pytest.fixture
def purchases(clock):
    return PurchaseEngine(clock=clock)


@pytest.fixture
def marketplace(clock):
    return Marketplace(clock=clock)


@pytest.fixture
def groups(purchases, clock):
    return GroupPurchaseEngine(purchases, clock=clock)


@pytest.fixture
def payment():
    return PaymentInfo(
        cardholder_name="Jane Doe",
        card_number="4111 1111 1111 4242",
        expiry_date="12/31",
        cvv="123",
        billing_address="1 Main St",
        billing_city="Springfield",
        billing_state="IL",
        billing_zip="62701",
    )


@pytest.fixture
def run_in_session(database):
    """Run `fn(session, *args)` in its own session, as a separate request would"""
    async def runner(fn, *args):
        async with database.session() as session:
            return await fn(session, *args)
    return runner


@pytest.fixture
def race(run_in_session):
    """Run several calls concurrently, each in its own session; exceptions are returned"""
    async def runner(*calls):
        return await asyncio.gather(
            *(run_in_session(fn, *args) for fn, *args in calls),
            return_exceptions=True,
        )
    return runner


# ==================== API ====================

@pytest.fixture
def identity():
    return JWTIdentityProvider(secret="test-secret")


@pytest.fixture
def auth(identity):
    def headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {identity.issue_token(user_id)}"}
    return headers


@pytest.fixture
def app(database, identity, clock):
    limiter.enabled = False
    yield create_app(database=database, identity=identity, clock=clock)
    limiter.enabled = True


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
