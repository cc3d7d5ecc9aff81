"""
Tests for service classes.
Tests authentication, listing management and the booking lifecycle.
"""

import pytest
import uuid
from datetime import timedelta
from decimal import Decimal

from rentals.models.booking import BookingStatus, CancelledBy
from rentals.models.blocked_date import BlockReason
from rentals.models.property import PropertyStatus, PropertyType
from rentals.models.user import User, UserRole
from rentals.repositories.notification import NotificationRepository
from rentals.repositories.property import PropertySearchFilters
from rentals.schemas.booking import BookingCreate, BookingStatusUpdate, PricingRequest
from rentals.schemas.property import PropertyCreate, PropertyUpdate, BlockedDateCreate
from rentals.schemas.user import UserCreate, PasswordChange
from rentals.services.auth import AuthService
from rentals.services.booking import BookingService
from rentals.services.property import PropertyService
from rentals.utils.exceptions import (
    BadRequestError,
    BookingStatusTransitionError,
    ConflictError,
    DateConflictError,
    DuplicateResourceError,
    ForbiddenError,
    InactiveUserError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    PropertyStatusError,
)
from tests.conftest import UserFactory, PropertyFactory, BookingFactory, days_from_now


@pytest.fixture
def auth_service(db_session) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session) -> PropertyService:
    return PropertyService(db_session)


@pytest.fixture
def booking_service(db_session) -> BookingService:
    return BookingService(db_session)


def booking_request(property_id, check_in, nights=3, guests_count=2) -> BookingCreate:
    return BookingCreate(
        property_id=property_id,
        check_in_date=check_in.isoformat(),
        check_out_date=(check_in + timedelta(days=nights)).isoformat(),
        guests_count=guests_count,
    )


def listing_payload(**overrides) -> PropertyCreate:
    data = {
        "title": "Harbour View Apartment",
        "description": "Two bedrooms overlooking the harbour, close to the old town.",
        "property_type": PropertyType.APARTMENT,
        "address": "12 Quay Street",
        "city": "Porto",
        "country": "Portugal",
        "max_guests": 4,
        "bedrooms": 2,
        "bathrooms": Decimal("1.5"),
        "beds": 2,
        "price_per_night": Decimal("90.00"),
    }
    data.update(overrides)
    return PropertyCreate(**data)


class TestAuthService:
    """Test AuthService functionality."""

    @pytest.mark.asyncio
    async def test_register_guest(self, auth_service: AuthService):
        user, access_token, refresh_token = await auth_service.register(UserCreate(
            email="New.Guest@Example.com", password="securepass123", first_name="New", last_name="Guest"
        ))

        assert user.email == "new.guest@example.com"
        assert user.role == UserRole.GUEST
        assert not user.is_host
        assert access_token and refresh_token

    @pytest.mark.asyncio
    async def test_register_host_awaits_approval(self, auth_service: AuthService):
        user, _, _ = await auth_service.register(UserCreate(
            email="newhost@example.com", password="securepass123",
            first_name="New", last_name="Host", role=UserRole.HOST
        ))

        assert user.is_host
        assert not user.host_approved

    @pytest.mark.asyncio
    async def test_register_admin_forbidden(self, auth_service: AuthService):
        with pytest.raises(ForbiddenError):
            await auth_service.register(UserCreate(
                email="sneaky@example.com", password="securepass123",
                first_name="Sneaky", last_name="Admin", role=UserRole.ADMIN
            ))

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, auth_service: AuthService, test_guest: User):
        with pytest.raises(DuplicateResourceError):
            await auth_service.register(UserCreate(
                email=test_guest.email, password="securepass123", first_name="Copy", last_name="Cat"
            ))

    @pytest.mark.asyncio
    async def test_login_records_last_login(self, auth_service: AuthService, test_guest: User):
        user, access_token, _ = await auth_service.login("guest@test.com", "testpassword123")

        assert user.last_login is not None
        assert (await auth_service.get_current_user(access_token)).id == test_guest.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, auth_service: AuthService, test_guest: User):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("guest@test.com", "wrongpassword1")

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, auth_service: AuthService, user_repository):
        await UserFactory.create_user(user_repository, email="inactive@test.com", is_active=False)

        with pytest.raises(InactiveUserError):
            await auth_service.login("inactive@test.com", "testpassword123")

    @pytest.mark.asyncio
    async def test_refresh_token_issues_access_token(self, auth_service: AuthService, test_guest: User):
        _, access_token, refresh_token = await auth_service.login("guest@test.com", "testpassword123")

        new_access = await auth_service.refresh_access_token(refresh_token)
        assert (await auth_service.get_current_user(new_access)).id == test_guest.id

        # An access token is not accepted where a refresh token is expected
        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_access_token(access_token)

    @pytest.mark.asyncio
    async def test_validate_token_returns_none_for_garbage(self, auth_service: AuthService):
        assert await auth_service.validate_token("garbage") is None

    @pytest.mark.asyncio
    async def test_change_password(self, auth_service: AuthService, test_guest: User):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.change_password(
                test_guest, PasswordChange(current_password="nope", new_password="brandnewpass1")
            )

        await auth_service.change_password(
            test_guest, PasswordChange(current_password="testpassword123", new_password="brandnewpass1")
        )
        user, _, _ = await auth_service.login("guest@test.com", "brandnewpass1")
        assert user.id == test_guest.id

    @pytest.mark.asyncio
    async def test_become_host(self, auth_service: AuthService, test_guest: User, test_host: User):
        user = await auth_service.become_host(test_guest)

        assert user.role == UserRole.HOST
        assert user.is_host and not user.host_approved

        with pytest.raises(BadRequestError, match="already a host"):
            await auth_service.become_host(test_host)


class TestPropertyService:
    """Test PropertyService functionality."""

    @pytest.mark.asyncio
    async def test_guest_cannot_create(self, property_service: PropertyService, test_guest: User):
        with pytest.raises(InsufficientPermissionsError):
            await property_service.create_property(listing_payload(), test_guest)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested,expected", [
        (None, PropertyStatus.DRAFT),
        (PropertyStatus.PENDING, PropertyStatus.PENDING),
        (PropertyStatus.ACTIVE, PropertyStatus.DRAFT),
    ])
    async def test_create_status_rules(self, property_service: PropertyService, test_host: User, requested, expected):
        property_obj = await property_service.create_property(listing_payload(status=requested), test_host)

        assert property_obj.status == expected
        assert property_obj.host_id == test_host.id

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_amenities(self, property_service: PropertyService, test_host: User):
        with pytest.raises(BadRequestError, match="Unknown amenity ids"):
            await property_service.create_property(listing_payload(amenity_ids=[uuid.uuid4()]), test_host)

    @pytest.mark.asyncio
    async def test_update_with_unknown_amenities_saves_nothing(
        self, property_service: PropertyService, db_session, draft_property, test_host: User
    ):
        with pytest.raises(BadRequestError, match="Unknown amenity ids"):
            await property_service.update_property(
                draft_property.id,
                PropertyUpdate(title="Renamed listing", status=PropertyStatus.PENDING, amenity_ids=[uuid.uuid4()]),
                test_host,
            )

        await db_session.refresh(draft_property)
        assert draft_property.title != "Renamed listing"
        assert draft_property.status == PropertyStatus.DRAFT
        assert await property_service.get_status_history(draft_property.id) == []

    @pytest.mark.asyncio
    async def test_draft_hidden_from_public(
        self, property_service: PropertyService, draft_property, test_guest: User, test_host: User, test_admin: User
    ):
        with pytest.raises(PropertyNotFoundError):
            await property_service.get_property(draft_property.id)
        with pytest.raises(PropertyNotFoundError):
            await property_service.get_property(draft_property.id, test_guest)

        assert (await property_service.get_property(draft_property.id, test_host)).id == draft_property.id
        assert (await property_service.get_property(draft_property.id, test_admin)).id == draft_property.id

    @pytest.mark.asyncio
    async def test_host_limited_to_draft_or_pending(
        self, property_service: PropertyService, draft_property, test_host: User
    ):
        with pytest.raises(PropertyStatusError):
            await property_service.update_property(
                draft_property.id, PropertyUpdate(status=PropertyStatus.ACTIVE), test_host
            )

        updated = await property_service.update_property(
            draft_property.id, PropertyUpdate(status=PropertyStatus.PENDING, title="Finished Loft"), test_host
        )
        assert updated.status == PropertyStatus.PENDING
        assert updated.title == "Finished Loft"

        history = await property_service.get_status_history(draft_property.id)
        assert [(h.old_status, h.new_status) for h in history] == [(PropertyStatus.DRAFT, PropertyStatus.PENDING)]

    @pytest.mark.asyncio
    async def test_admin_sets_any_status(self, property_service: PropertyService, draft_property, test_admin: User):
        updated = await property_service.update_property(
            draft_property.id, PropertyUpdate(status=PropertyStatus.ACTIVE), test_admin
        )
        assert updated.status == PropertyStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_other_host_cannot_update(
        self, property_service: PropertyService, test_property, user_repository
    ):
        rival = await UserFactory.create_user(user_repository, email="rival@test.com", role=UserRole.HOST)

        with pytest.raises(PropertyOwnershipError):
            await property_service.update_property(test_property.id, PropertyUpdate(title="Mine Now"), rival)

    @pytest.mark.asyncio
    async def test_night_limits_checked_against_merged_values(
        self, property_service: PropertyService, test_property, test_host: User
    ):
        with pytest.raises(BadRequestError, match="max_nights"):
            await property_service.update_property(test_property.id, PropertyUpdate(min_nights=40), test_host)

    @pytest.mark.asyncio
    async def test_delete_refused_with_open_bookings(
        self, property_service: PropertyService, confirmed_booking, test_property, test_host: User
    ):
        with pytest.raises(BadRequestError, match="pending or confirmed bookings"):
            await property_service.delete_property(test_property.id, test_host)

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, property_service: PropertyService, test_property, test_host: User):
        deleted = await property_service.delete_property(test_property.id, test_host)

        assert deleted.status == PropertyStatus.INACTIVE
        history = await property_service.get_status_history(test_property.id)
        assert history[0].new_status == PropertyStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_block_dates(self, property_service: PropertyService, test_property, test_host: User):
        days = [days_from_now(30), days_from_now(31)]
        created = await property_service.block_dates(
            test_property.id, BlockedDateCreate(dates=days, reason=BlockReason.MAINTENANCE), test_host
        )
        assert [day.blocked_date for day in created] == days

        with pytest.raises(ConflictError, match="already blocked"):
            await property_service.block_dates(test_property.id, BlockedDateCreate(dates=[days[1]]), test_host)

        await property_service.unblock_date(test_property.id, days[0], test_host)
        remaining = await property_service.get_blocked_dates(test_property.id)
        assert [day.blocked_date for day in remaining] == [days[1]]

    @pytest.mark.asyncio
    async def test_search_rejects_inverted_price_range(self, property_service: PropertyService):
        with pytest.raises(BadRequestError, match="min_price"):
            await property_service.search_properties(
                PropertySearchFilters(min_price=Decimal("200"), max_price=Decimal("100"))
            )


class TestBookingValidation:
    """The ordered chain of booking rules."""

    @pytest.fixture
    async def strict_property(self, property_repository, test_host):
        return await PropertyFactory.create_property(
            property_repository, test_host.id, title="Strict Chalet",
            min_nights=2, max_nights=5, advance_booking_days=60, max_guests=3
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset,nights,guests,message", [
        (10, 0, 2, "Check-out date must be after check-in date"),
        (-1, 3, 2, "Check-in date cannot be in the past"),
        (10, 3, 4, "Property can accommodate maximum 3 guests"),
        (10, 1, 2, "Minimum stay is 2 nights"),
        (10, 6, 2, "Maximum stay is 5 nights"),
        (61, 3, 2, "Cannot book more than 60 days in advance"),
    ])
    async def test_rule_messages(
        self, booking_service: BookingService, strict_property, test_guest, offset, nights, guests, message
    ):
        with pytest.raises(BadRequestError) as exc_info:
            await booking_service.create_booking(
                booking_request(strict_property.id, days_from_now(offset), nights, guests), test_guest
            )
        assert exc_info.value.detail == message

    @pytest.mark.asyncio
    async def test_inactive_property_not_bookable(self, booking_service: BookingService, draft_property, test_guest):
        with pytest.raises(BadRequestError, match="not available for booking"):
            await booking_service.create_booking(booking_request(draft_property.id, days_from_now(10)), test_guest)

    @pytest.mark.asyncio
    async def test_malformed_date(self, booking_service: BookingService, test_property, test_guest):
        request = BookingCreate(
            property_id=test_property.id, check_in_date="10/07/2030", check_out_date="2030-07-12"
        )
        with pytest.raises(BadRequestError, match="Invalid date format. Use YYYY-MM-DD"):
            await booking_service.create_booking(request, test_guest)

    @pytest.mark.asyncio
    async def test_host_cannot_book_own_property(self, booking_service: BookingService, test_property, test_host):
        with pytest.raises(BadRequestError, match="You cannot book your own property"):
            await booking_service.create_booking(booking_request(test_property.id, days_from_now(10)), test_host)

    @pytest.mark.asyncio
    async def test_missing_property(self, booking_service: BookingService, test_guest):
        with pytest.raises(PropertyNotFoundError):
            await booking_service.create_booking(booking_request(uuid.uuid4(), days_from_now(10)), test_guest)

    @pytest.mark.asyncio
    async def test_overlap_reports_booking_conflict(
        self, booking_service: BookingService, confirmed_booking, test_property, other_guest
    ):
        with pytest.raises(DateConflictError) as exc_info:
            await booking_service.create_booking(
                booking_request(test_property.id, confirmed_booking.check_in_date + timedelta(days=1)), other_guest
            )

        conflicts = exc_info.value.details
        assert conflicts[0]["type"] == "booking"
        assert conflicts[0]["booking_id"] == str(confirmed_booking.id)

    @pytest.mark.asyncio
    async def test_back_to_back_is_allowed(
        self, booking_service: BookingService, confirmed_booking, test_property, other_guest
    ):
        booking, _ = await booking_service.create_booking(
            booking_request(test_property.id, confirmed_booking.check_out_date), other_guest
        )
        assert booking.check_in_date == confirmed_booking.check_out_date

    @pytest.mark.asyncio
    async def test_blocked_day_conflicts(
        self, booking_service: BookingService, property_service: PropertyService, test_property, test_host, test_guest
    ):
        blocked_day = days_from_now(21)
        await property_service.block_dates(
            test_property.id, BlockedDateCreate(dates=[blocked_day], reason=BlockReason.PERSONAL), test_host
        )

        with pytest.raises(DateConflictError) as exc_info:
            await booking_service.create_booking(booking_request(test_property.id, days_from_now(20)), test_guest)

        assert exc_info.value.details == [
            {"type": "blocked", "date": blocked_day.isoformat(), "reason": "personal"}
        ]

    @pytest.mark.asyncio
    async def test_cancelled_booking_frees_dates(
        self, booking_service: BookingService, booking_repository, test_property, test_guest, other_guest
    ):
        cancelled = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest, status=BookingStatus.CANCELLED
        )

        booking, _ = await booking_service.create_booking(
            booking_request(test_property.id, cancelled.check_in_date), other_guest
        )
        assert booking.status == BookingStatus.PENDING


class TestBookingLifecycle:
    """Test creation, status changes and cancellation."""

    @pytest.mark.asyncio
    async def test_create_prices_stay_and_opens_conversation(
        self, booking_service: BookingService, db_session, test_property, test_guest, test_host
    ):
        booking, conversation = await booking_service.create_booking(
            booking_request(test_property.id, days_from_now(10), nights=3, guests_count=2), test_guest
        )

        assert booking.status == BookingStatus.PENDING
        assert booking.base_price == Decimal("600.00")
        assert booking.service_fee == Decimal("60.00")
        assert booking.total_amount == Decimal("685.00")
        assert booking.security_deposit == Decimal("200.00")
        assert conversation.property_id == test_property.id
        assert conversation.booking_id == booking.id
        assert await NotificationRepository(db_session).unread_count(test_host.id) == 1

    @pytest.mark.asyncio
    async def test_second_booking_reuses_conversation(
        self, booking_service: BookingService, test_property, test_guest
    ):
        _, first = await booking_service.create_booking(booking_request(test_property.id, days_from_now(10)), test_guest)
        _, second = await booking_service.create_booking(booking_request(test_property.id, days_from_now(20)), test_guest)

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_instant_book_confirms(self, booking_service: BookingService, property_repository, test_host, test_guest):
        instant = await PropertyFactory.create_property(property_repository, test_host.id, is_instant_book=True)

        booking, _ = await booking_service.create_booking(booking_request(instant.id, days_from_now(10)), test_guest)
        assert booking.status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_booking_survives_failed_notification(
        self, booking_service: BookingService, booking_repository, monkeypatch, test_property, test_guest
    ):
        async def broken_notify(*args, **kwargs):
            raise RuntimeError("notification store offline")

        monkeypatch.setattr(booking_service.notifications, "notify", broken_notify)
        request = booking_request(test_property.id, days_from_now(10))

        booking, conversation = await booking_service.create_booking(request, test_guest)

        assert conversation is None
        stored = await booking_repository.get_by_id(booking.id)
        assert stored is not None
        assert stored.status == BookingStatus.PENDING
        with pytest.raises(DateConflictError):
            await booking_service.create_booking(request, test_guest)

    @pytest.mark.asyncio
    async def test_host_moves_booking_through_statuses(
        self, booking_service: BookingService, confirmed_booking, test_host
    ):
        completed = await booking_service.update_status(
            confirmed_booking.id, BookingStatusUpdate(status=BookingStatus.COMPLETED, host_notes="Lovely guests"),
            test_host
        )
        assert completed.status == BookingStatus.COMPLETED
        assert completed.host_notes == "Lovely guests"

        with pytest.raises(BookingStatusTransitionError, match="Cannot change status from completed to confirmed"):
            await booking_service.update_status(
                confirmed_booking.id, BookingStatusUpdate(status=BookingStatus.CONFIRMED), test_host
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("actor", ["test_host", "test_admin"])
    async def test_cancelled_booking_cannot_be_reconfirmed(
        self, request, booking_service: BookingService, confirmed_booking, test_guest, test_admin, actor
    ):
        await booking_service.cancel_booking(confirmed_booking.id, test_guest)

        with pytest.raises(BookingStatusTransitionError, match="Cannot change status from cancelled to confirmed"):
            await booking_service.update_status(
                confirmed_booking.id, BookingStatusUpdate(status=BookingStatus.CONFIRMED), request.getfixturevalue(actor)
            )

        booking = await booking_service.get_booking_record(confirmed_booking.id)
        assert booking.status == BookingStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_guest_cannot_update_status(self, booking_service: BookingService, confirmed_booking, test_guest):
        with pytest.raises(ForbiddenError):
            await booking_service.update_status(
                confirmed_booking.id, BookingStatusUpdate(status=BookingStatus.COMPLETED), test_guest
            )

    @pytest.mark.asyncio
    async def test_only_admin_marks_refunded(
        self, booking_service: BookingService, booking_repository, test_property, test_guest, test_host, test_admin
    ):
        cancelled = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest, status=BookingStatus.CANCELLED
        )

        with pytest.raises(ForbiddenError):
            await booking_service.update_status(cancelled.id, BookingStatusUpdate(status=BookingStatus.REFUNDED), test_host)

        refunded = await booking_service.update_status(
            cancelled.id, BookingStatusUpdate(status=BookingStatus.REFUNDED), test_admin
        )
        assert refunded.status == BookingStatus.REFUNDED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("actor,expected", [
        ("test_guest", CancelledBy.GUEST),
        ("test_host", CancelledBy.HOST),
        ("test_admin", CancelledBy.ADMIN),
    ])
    async def test_cancel_records_who_cancelled(
        self, request, booking_service: BookingService, confirmed_booking, test_admin, actor, expected
    ):
        user = request.getfixturevalue(actor)

        booking = await booking_service.cancel_booking(confirmed_booking.id, user, cancellation_reason="Plans changed")

        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancelled_by == expected
        assert booking.cancelled_at is not None
        assert booking.cancellation_reason == "Plans changed"

    @pytest.mark.asyncio
    async def test_stranger_cannot_cancel(self, booking_service: BookingService, confirmed_booking, other_guest):
        with pytest.raises(ForbiddenError):
            await booking_service.cancel_booking(confirmed_booking.id, other_guest)

    @pytest.mark.asyncio
    async def test_completed_booking_not_cancellable(
        self, booking_service: BookingService, booking_repository, test_property, test_guest
    ):
        completed = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest, status=BookingStatus.COMPLETED
        )
        with pytest.raises(BadRequestError, match="Only pending or confirmed"):
            await booking_service.cancel_booking(completed.id, test_guest)

    @pytest.mark.asyncio
    async def test_permissions(self, booking_service: BookingService, confirmed_booking, test_guest, test_host):
        guest_view = await booking_service.get_permissions(confirmed_booking, test_guest)
        host_view = await booking_service.get_permissions(confirmed_booking, test_host)

        assert guest_view == {"can_cancel": True, "can_review": False, "can_update_status": False}
        assert host_view["can_update_status"] is True


class TestAvailabilityAndPricing:
    @pytest.mark.asyncio
    async def test_check_availability(self, booking_service: BookingService, test_property):
        check_in = days_from_now(10)
        result = await booking_service.check_availability(
            test_property.id, check_in.isoformat(), (check_in + timedelta(days=2)).isoformat(), 1
        )

        assert result["available"] is True
        assert result["booking_details"]["nights"] == 2
        assert result["booking_details"]["pricing"]["total_amount"] == 245.0

    @pytest.mark.asyncio
    async def test_booked_dates_window(
        self, booking_service: BookingService, booking_repository, confirmed_booking, test_property, test_guest
    ):
        await BookingFactory.create_booking(
            booking_repository, test_property, test_guest,
            check_in=days_from_now(40), status=BookingStatus.CANCELLED
        )

        result = await booking_service.get_booked_dates(test_property.id)

        assert [r["booking_id"] for r in result["booked_ranges"]] == [str(confirmed_booking.id)]
        assert result["end_date"] - result["start_date"] == timedelta(days=180)

    @pytest.mark.asyncio
    async def test_quote_defaults_to_capacity(self, booking_service: BookingService, test_property):
        check_in = days_from_now(10)
        quote = await booking_service.quote_price(PricingRequest(
            property_id=test_property.id,
            check_in_date=check_in.isoformat(),
            check_out_date=(check_in + timedelta(days=2)).isoformat(),
        ))

        # 100 * 2 nights * 4 guests + 25 cleaning + 10% service
        assert quote["pricing"]["guests"] == 4
        assert quote["pricing"]["total_amount"] == 905.0

    @pytest.mark.asyncio
    async def test_quote_ignores_availability(self, booking_service: BookingService, confirmed_booking, test_property):
        quote = await booking_service.quote_price(PricingRequest(
            property_id=test_property.id,
            check_in_date=confirmed_booking.check_in_date.isoformat(),
            check_out_date=confirmed_booking.check_out_date.isoformat(),
            guests_count=1,
        ))
        assert quote["pricing"]["nights"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("nights,guests_count,message", [
        (2, 5, "Property can accommodate maximum 4 guests"),
        (31, 2, "Maximum stay is 30 nights"),
    ])
    async def test_quote_enforces_listing_limits(
        self, booking_service: BookingService, test_property, nights, guests_count, message
    ):
        check_in = days_from_now(10)
        with pytest.raises(BadRequestError, match=message):
            await booking_service.quote_price(PricingRequest(
                property_id=test_property.id,
                check_in_date=check_in.isoformat(),
                check_out_date=(check_in + timedelta(days=nights)).isoformat(),
                guests_count=guests_count,
            ))

    @pytest.mark.asyncio
    async def test_quote_refuses_unbookable_listing(self, booking_service: BookingService, draft_property):
        check_in = days_from_now(10)
        with pytest.raises(BadRequestError, match="Property is not available for booking"):
            await booking_service.quote_price(PricingRequest(
                property_id=draft_property.id,
                check_in_date=check_in.isoformat(),
                check_out_date=(check_in + timedelta(days=2)).isoformat(),
            ))

    @pytest.mark.asyncio
    async def test_quote_respects_minimum_stay(self, booking_service: BookingService, property_repository, test_host):
        weekly = await PropertyFactory.create_property(property_repository, test_host.id, min_nights=7)
        check_in = days_from_now(10)
        with pytest.raises(BadRequestError, match="Minimum stay is 7 nights"):
            await booking_service.quote_price(PricingRequest(
                property_id=weekly.id,
                check_in_date=check_in.isoformat(),
                check_out_date=(check_in + timedelta(days=3)).isoformat(),
            ))
