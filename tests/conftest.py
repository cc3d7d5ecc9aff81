"""
Test configuration and fixtures for the vacation rental API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the environment has to be in place first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="rentals-uploads-"))

import pytest
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from rentals.main import app
from rentals.database import Base, get_db, utcnow
from rentals.models.user import User, UserRole
from rentals.models.property import Property, PropertyType, PropertyStatus
from rentals.models.booking import Booking, BookingStatus, PaymentStatus
from rentals.models.amenity import Amenity, AmenityCategory
from rentals.repositories.user import UserRepository
from rentals.repositories.property import PropertyRepository
from rentals.repositories.booking import BookingRepository
from rentals.repositories.amenity import AmenityRepository
from rentals.services.realtime import ConnectionManager, get_connection_manager
from rentals.utils.auth import create_access_token
from rentals.utils.pricing import calculate_price


# Test database configuration
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def days_from_now(days: int) -> date:
    return utcnow().date() + timedelta(days=days)


@pytest.fixture
async def test_engine():
    """A fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False} if "sqlite" in TEST_DATABASE_URL else {}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def connection_manager() -> ConnectionManager:
    """An isolated socket registry so tests never share rooms."""
    return ConnectionManager()


@pytest.fixture
async def async_client(db_session: AsyncSession, connection_manager: ConnectionManager) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_connection_manager] = lambda: connection_manager

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def booking_repository(db_session: AsyncSession) -> BookingRepository:
    return BookingRepository(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        first_name: str = "Test",
        last_name: str = "User",
        role: UserRole = UserRole.GUEST,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "is_active": is_active,
            "is_host": role in (UserRole.HOST, UserRole.ADMIN),
            "host_approved": role in (UserRole.HOST, UserRole.ADMIN),
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        password: str = "testpassword123",
        first_name: str = "Test",
        last_name: str = "User",
        role: UserRole = UserRole.GUEST,
        is_active: bool = True
    ) -> User:
        """Create a test user in the database."""
        user_data = UserFactory.create_user_data(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active
        )
        return await user_repo.create_user(user_data)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        host_id: uuid.UUID = None,
        title: str = "Seaside Cottage",
        city: str = "Lisbon",
        country: str = "Portugal",
        property_type: PropertyType = PropertyType.COTTAGE,
        price_per_night: Decimal = Decimal("100.00"),
        cleaning_fee: Decimal = Decimal("25.00"),
        security_deposit: Decimal = Decimal("200.00"),
        max_guests: int = 4,
        bedrooms: int = 2,
        bathrooms: Decimal = Decimal("1.0"),
        min_nights: int = 1,
        max_nights: int = 30,
        advance_booking_days: int = 365,
        is_instant_book: bool = False,
        status: PropertyStatus = PropertyStatus.ACTIVE
    ) -> dict:
        return {
            "host_id": host_id,
            "title": title,
            "description": "A bright cottage a short walk from the beach, with a garden.",
            "property_type": property_type,
            "address": "1 Rua do Mar",
            "city": city,
            "country": country,
            "max_guests": max_guests,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "beds": bedrooms,
            "price_per_night": price_per_night,
            "cleaning_fee": cleaning_fee,
            "security_deposit": security_deposit,
            "min_nights": min_nights,
            "max_nights": max_nights,
            "advance_booking_days": advance_booking_days,
            "is_instant_book": is_instant_book,
            "status": status,
        }

    @staticmethod
    async def create_property(property_repo: PropertyRepository, host_id: uuid.UUID, **overrides) -> Property:
        """Create a test property in the database."""
        return await property_repo.create(PropertyFactory.create_property_data(host_id=host_id, **overrides))


class BookingFactory:
    """Factory for creating bookings directly, bypassing the validation chain."""

    @staticmethod
    async def create_booking(
        booking_repo: BookingRepository,
        property_obj: Property,
        guest: User,
        check_in: date = None,
        check_out: date = None,
        guests_count: int = 2,
        status: BookingStatus = BookingStatus.CONFIRMED,
        payment_status: PaymentStatus = PaymentStatus.PENDING
    ) -> Booking:
        check_in = check_in or days_from_now(10)
        check_out = check_out or check_in + timedelta(days=3)
        quote = calculate_price(
            property_obj.price_per_night,
            (check_out - check_in).days,
            guests_count,
            cleaning_fee=property_obj.cleaning_fee,
            security_deposit=property_obj.security_deposit,
        )
        return await booking_repo.create({
            "property_id": property_obj.id,
            "guest_id": guest.id,
            "host_id": property_obj.host_id,
            "check_in_date": check_in,
            "check_out_date": check_out,
            "guests_count": guests_count,
            "base_price": quote.base_price,
            "cleaning_fee": quote.cleaning_fee,
            "security_deposit": quote.security_deposit,
            "service_fee": quote.service_fee,
            "total_amount": quote.total_amount,
            "status": status,
            "payment_status": payment_status,
        })


class AmenityFactory:
    @staticmethod
    async def create_amenity(
        amenity_repo: AmenityRepository,
        name: str = None,
        category: AmenityCategory = AmenityCategory.BASIC,
        is_active: bool = True
    ) -> Amenity:
        return await amenity_repo.create({
            "name": name or f"Amenity {uuid.uuid4().hex[:6]}",
            "category": category,
            "is_active": is_active,
        })


# Common test fixtures
@pytest.fixture
async def test_guest(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="guest@test.com", first_name="Gina", last_name="Guest", role=UserRole.GUEST
    )


@pytest.fixture
async def other_guest(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="other@test.com", first_name="Oscar", last_name="Other", role=UserRole.GUEST
    )


@pytest.fixture
async def test_host(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="host@test.com", first_name="Hana", last_name="Host", role=UserRole.HOST
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, email="admin@test.com", first_name="Ada", last_name="Admin", role=UserRole.ADMIN
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_host: User) -> Property:
    return await PropertyFactory.create_property(property_repository, test_host.id)


@pytest.fixture
async def draft_property(property_repository: PropertyRepository, test_host: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository, test_host.id, title="Unfinished Loft", status=PropertyStatus.DRAFT
    )


@pytest.fixture
async def confirmed_booking(booking_repository: BookingRepository, test_property: Property, test_guest: User) -> Booking:
    return await BookingFactory.create_booking(booking_repository, test_property, test_guest)


# Utility functions for tests
def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def assert_error_envelope(response, status_code: int, code: Optional[str] = None) -> dict:
    """Check the shape every error response shares and return its error object."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert "error" in body
    error = body["error"]
    assert error["message"]
    assert error["timestamp"]
    assert error["request_id"]
    if code is not None:
        assert error["code"] == code
    return error


class FakeWebSocket:
    """Records frames sent to it; optionally fails every send."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail
        self.accepted = False

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self):
        return [frame["event"] for frame in self.sent]
