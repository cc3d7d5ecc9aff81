"""
Tests for database models and pricing.
Tests model validation, derived properties and the price calculation.
"""

import pytest
import uuid
from datetime import date, timedelta
from decimal import Decimal

from rentals.models.user import User, UserRole
from rentals.models.property import Property, PropertyStatus
from rentals.models.booking import Booking, BookingStatus, PaymentStatus, BOOKING_TRANSITIONS
from rentals.models.review import Review, ReviewModeration
from rentals.utils.pricing import calculate_price, count_nights, to_money
from tests.conftest import UserFactory, PropertyFactory, BookingFactory, days_from_now


class TestUserModel:
    """Test User model validation and methods."""

    def test_email_validation_normalizes(self):
        assert User.validate_email_format("Guest@Example.COM") == "guest@example.com"

    @pytest.mark.parametrize("email", ["invalid-email", "@example.com", "test@", ""])
    def test_email_validation_invalid(self, email):
        with pytest.raises(ValueError, match="Invalid email format"):
            User.validate_email_format(email)

    def test_password_hashing(self):
        hashed = User.hash_password("testpassword123")

        assert hashed != "testpassword123"
        assert hashed.startswith("$2b$")

    def test_password_hashing_rejects_short_password(self):
        with pytest.raises(ValueError, match="at least 8 characters"):
            User.hash_password("short1")

    def test_verify_password(self):
        user = User(email="a@b.com", hashed_password=User.hash_password("testpassword123"))

        assert user.verify_password("testpassword123")
        assert not user.verify_password("wrongpassword1")

    def test_roles_and_management(self):
        owner_id = uuid.uuid4()
        host = User(id=owner_id, role=UserRole.HOST, is_host=True)
        admin = User(id=uuid.uuid4(), role=UserRole.ADMIN)
        guest = User(id=uuid.uuid4(), role=UserRole.GUEST, is_host=False)

        assert host.can_host and admin.can_host and not guest.can_host
        assert host.can_manage_property(owner_id)
        assert admin.can_manage_property(owner_id)
        assert not guest.can_manage_property(owner_id)

    @pytest.mark.asyncio
    async def test_to_dict_excludes_password(self, test_guest: User):
        data = test_guest.to_dict()

        assert "hashed_password" not in data
        assert data["role"] == "guest"
        assert data["full_name"] == "Gina Guest"


class TestPropertyModel:
    """Test Property model behaviour."""

    @pytest.mark.asyncio
    async def test_only_active_is_bookable(self, property_repository, test_host):
        active = await PropertyFactory.create_property(property_repository, test_host.id)
        pending = await PropertyFactory.create_property(
            property_repository, test_host.id, status=PropertyStatus.PENDING
        )

        assert active.is_bookable
        assert not pending.is_bookable

    @pytest.mark.asyncio
    async def test_summary_without_images(self, test_property: Property):
        summary = test_property.to_summary()

        assert summary["primary_image"] is None
        assert summary["price_per_night"] == 100.0
        assert summary["status"] == "active"

    @pytest.mark.asyncio
    async def test_to_dict_includes_host_summary(self, test_property: Property, test_host: User):
        data = test_property.to_dict()

        assert data["host"]["id"] == str(test_host.id)
        assert data["check_in_time"] == "15:00"
        assert data["images"] == []


class TestBookingModel:
    """Test Booking model behaviour."""

    @pytest.mark.asyncio
    async def test_nights_and_parties(self, confirmed_booking: Booking, test_guest, test_host, other_guest):
        assert confirmed_booking.nights == 3
        assert confirmed_booking.is_party(test_guest.id)
        assert confirmed_booking.is_party(test_host.id)
        assert not confirmed_booking.is_party(other_guest.id)

    @pytest.mark.asyncio
    async def test_cancellable_statuses(self, booking_repository, test_property, test_guest):
        completed = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest,
            check_in=days_from_now(40), status=BookingStatus.COMPLETED
        )
        pending = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest,
            check_in=days_from_now(50), status=BookingStatus.PENDING
        )

        assert pending.is_cancellable
        assert not completed.is_cancellable

    def test_terminal_statuses_have_no_transitions(self):
        assert BOOKING_TRANSITIONS[BookingStatus.COMPLETED] == ()
        assert BOOKING_TRANSITIONS[BookingStatus.REFUNDED] == ()
        assert BookingStatus.REFUNDED in BOOKING_TRANSITIONS[BookingStatus.CANCELLED]


class TestReviewModel:
    def test_hidden_reviews_are_not_visible(self):
        review = Review(rating=4, is_published=True, admin_action=ReviewModeration.HIDDEN)
        assert not review.is_visible

        review.admin_action = ReviewModeration.APPROVED
        assert review.is_visible


class TestPricing:
    """Test price calculation."""

    def test_rate_is_charged_per_guest(self):
        quote = calculate_price(Decimal("100"), nights=3, guests=2, cleaning_fee=Decimal("25"), service_fee_rate="0.10")

        assert quote.base_price == Decimal("600.00")
        assert quote.service_fee == Decimal("60.00")
        assert quote.total_amount == Decimal("685.00")

    def test_deposit_is_reported_but_not_charged(self):
        quote = calculate_price(100, nights=1, guests=1, security_deposit=500, service_fee_rate=0)

        assert quote.security_deposit == Decimal("500.00")
        assert quote.total_amount == Decimal("100.00")

    def test_amounts_round_half_up_to_cents(self):
        quote = calculate_price(Decimal("33.33"), nights=1, guests=1, service_fee_rate="0.125")

        # 33.33 * 0.125 = 4.16625
        assert quote.service_fee == Decimal("4.17")
        assert quote.total_amount == Decimal("37.50")

    def test_default_service_fee_rate(self):
        quote = calculate_price(100, nights=2, guests=1)
        assert quote.service_fee == Decimal("20.00")

    @pytest.mark.parametrize("nights,guests", [(0, 1), (1, 0), (-2, 2)])
    def test_rejects_empty_stays(self, nights, guests):
        with pytest.raises(ValueError):
            calculate_price(100, nights=nights, guests=guests)

    def test_to_dict_uses_floats(self):
        data = calculate_price(80, nights=2, guests=1, service_fee_rate="0.10").to_dict()

        assert data == {
            "nights": 2,
            "price_per_night": 80.0,
            "guests": 1,
            "base_price": 160.0,
            "cleaning_fee": 0.0,
            "service_fee": 16.0,
            "security_deposit": 0.0,
            "total_amount": 176.0,
        }

    def test_helpers(self):
        assert count_nights(date(2030, 1, 1), date(2030, 1, 4)) == 3
        assert to_money("1.005") == Decimal("1.01")
        assert to_money(2) == Decimal("2.00")
