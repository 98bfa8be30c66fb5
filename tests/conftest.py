"""
Shared fixtures: every test gets a fresh SQLite file database, a frozen clock
and service instances wired to both.
"""
import os

# settings are read at import time, so configure before rideshare is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./rideshare-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEARCH_TIMEZONE", "UTC")

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import httpx
import pytest
from sqlalchemy import func, select as sa_select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from rideshare.db.base import Base
from rideshare.db.session import get_sessionmaker
from rideshare.deps import get_clock
from rideshare.main import app
from rideshare.models.models import Booking, BookingStatus, Ride, User
from rideshare.schemas.ride import RideCreate
from rideshare.services import search_log
from rideshare.services.auth import create_access_token
from rideshare.services.bookings import BookingService
from rideshare.services.clock import FixedClock
from rideshare.services.rides import RideService

NOW = datetime(2030, 5, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await search_log.drain()
    await engine.dispose()


@pytest.fixture
def sessions(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def ride_service(sessions, clock):
    return RideService(sessions, clock)


@pytest.fixture
def booking_service(sessions, clock):
    return BookingService(sessions, clock)


@pytest.fixture
def make_user(sessions):
    async def _make(name="Test User", email=None):
        user = User(
            email=email or f"{uuid4().hex[:8]}@example.com",
            password_hash="not-a-real-hash",
            name=name,
            phone="+355 69 123 4567",
            locale="sq",
            created_at=NOW,
        )
        async with sessions.begin() as session:
            session.add(user)
        return user

    return _make


@pytest.fixture
async def driver(make_user):
    return await make_user("Driver")


@pytest.fixture
async def rider_a(make_user):
    return await make_user("Rider A")


@pytest.fixture
async def rider_b(make_user):
    return await make_user("Rider B")


def ride_payload(**overrides) -> dict:
    data = {
        "origin_city": "Tiranë",
        "destination_city": "Durrës",
        "departure_time": NOW + timedelta(days=1),
        "price_per_seat": 500,
        "total_seats": 3,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_ride(ride_service, driver):
    async def _make(owner=None, **overrides):
        owner = owner or driver
        return await ride_service.create_ride(owner.id, RideCreate(**ride_payload(**overrides)))

    return _make


async def accepted_seats(sessions, ride_id: str) -> int:
    stmt = sa_select(func.coalesce(func.sum(Booking.seats_requested), 0)).where(
        Booking.ride_id == ride_id, Booking.status == BookingStatus.ACCEPTED
    )
    async with sessions() as session:
        return (await session.execute(stmt)).scalar_one()


async def assert_seat_invariant(sessions, ride_id: str) -> Ride:
    async with sessions() as session:
        ride = (await session.execute(sa_select(Ride).where(Ride.id == ride_id))).scalars().one()
    assert 0 <= ride.available_seats <= ride.total_seats
    assert ride.available_seats == ride.total_seats - await accepted_seats(sessions, ride_id)
    return ride


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def client(sessions, clock):
    app.dependency_overrides[get_sessionmaker] = lambda: sessions
    app.dependency_overrides[get_clock] = lambda: clock
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    await search_log.drain()
    app.dependency_overrides.clear()
