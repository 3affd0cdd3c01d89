"""
Pytest configuration for apartment booking tests
"""
import os

# Must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-for-testing-purposes-only")

from datetime import date
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from apartment_booking.core.locks import OccupancyLocks
from apartment_booking.core.security import create_access_token
from apartment_booking.database import Base
from apartment_booking.models import (
    Apartment,
    AvailabilityBlock,
    BlockedDate,
    BlockReason,
    Booking,
    BookingStatus,
    User,
    UserRole,
)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def locks():
    return OccupancyLocks()


@pytest_asyncio.fixture
async def users(session):
    """owner, guest and admin"""
    owner = User(name="Owner", email="owner@example.com", role=UserRole.USER)
    guest = User(name="Guest", email="guest@example.com", role=UserRole.USER)
    admin = User(name="Admin", email="admin@example.com", role=UserRole.ADMIN)
    session.add_all([owner, guest, admin])
    await session.commit()
    return {"owner": owner, "guest": guest, "admin": admin}


@pytest_asyncio.fixture
async def apartments(session, users):
    """Four apartments A-D, all owned by the owner user"""
    created = {}
    for key in ("A", "B", "C", "D"):
        apartment = Apartment(
            owner_id=users["owner"].id,
            title=f"Apartment {key}",
            location="Athens",
            price_per_night=Decimal("80.00"),
        )
        session.add(apartment)
        created[key] = apartment
    await session.commit()
    return created


@pytest.fixture
def add_booking(session, users):
    async def _add(apartment, start, end, status=BookingStatus.CONFIRMED, user=None):
        booking = Booking(
            apartment_id=apartment.id,
            user_id=(user or users["guest"]).id,
            start_date=start,
            end_date=end,
            total_price=Decimal("0"),
            status=status,
        )
        session.add(booking)
        await session.commit()
        return booking

    return _add


@pytest.fixture
def add_block(session, users):
    async def _add(apartment, start, end, reason=BlockReason.MAINTENANCE):
        block = AvailabilityBlock(
            apartment_id=apartment.id,
            start_date=start,
            end_date=end,
            is_available=False,
            reason=reason,
            created_by=users["owner"].id,
        )
        session.add(block)
        await session.commit()
        return block

    return _add


@pytest.fixture
def add_blocked_date(session, users):
    async def _add(start, end, apartment=None, reason="Holiday"):
        blocked = BlockedDate(
            start_date=start,
            end_date=end,
            reason=reason,
            apartment_id=apartment.id if apartment is not None else None,
            created_by=users["admin"].id,
        )
        session.add(blocked)
        await session.commit()
        return blocked

    return _add


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(session_factory, locks):
    from apartment_booking.core.locks import get_occupancy_locks
    from apartment_booking.database import get_db
    from apartment_booking.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_occupancy_locks] = lambda: locks

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_booking_payload(apartments):
    return {
        "apartmentId": apartments["A"].id,
        "startDate": date(2024, 6, 1).isoformat(),
        "endDate": date(2024, 6, 5).isoformat(),
    }


@pytest.fixture
def auth():
    """auth(user) -> Authorization header for that user"""
    return auth_headers
