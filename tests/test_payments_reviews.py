"""
Tests for payment tracking, refunds and reviews.
"""

import pytest
from decimal import Decimal

from rentals.models.booking import BookingStatus, PaymentStatus
from rentals.models.review import ReviewModeration
from rentals.schemas.payment import PaymentUpdate, RefundRequest
from rentals.schemas.review import ReviewCreate, ReviewModerationRequest
from rentals.services.payment import PaymentService
from rentals.services.review import ReviewService
from rentals.utils.exceptions import (
    BadRequestError,
    BookingStatusTransitionError,
    ConflictError,
    ForbiddenError,
)
from tests.conftest import BookingFactory, days_from_now, auth_headers


@pytest.fixture
def payment_service(db_session) -> PaymentService:
    return PaymentService(db_session)


@pytest.fixture
def review_service(db_session) -> ReviewService:
    return ReviewService(db_session)


@pytest.fixture
async def paid_cancelled_booking(booking_repository, test_property, test_guest):
    return await BookingFactory.create_booking(
        booking_repository, test_property, test_guest,
        status=BookingStatus.CANCELLED, payment_status=PaymentStatus.PAID
    )


@pytest.fixture
async def completed_booking(booking_repository, test_property, test_guest):
    return await BookingFactory.create_booking(
        booking_repository, test_property, test_guest,
        check_in=days_from_now(30), status=BookingStatus.COMPLETED
    )


class TestPayments:
    """Test reported payment changes."""

    @pytest.mark.asyncio
    async def test_paid_confirms_pending_booking(
        self, payment_service: PaymentService, booking_repository, test_property, test_guest
    ):
        pending = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest, status=BookingStatus.PENDING
        )

        booking = await payment_service.update_payment(
            pending.id,
            PaymentUpdate(payment_status=PaymentStatus.PAID, payment_method="card", payment_reference="ch_123"),
            test_guest,
        )

        assert booking.payment_status == PaymentStatus.PAID
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.payment_method == "card"

    @pytest.mark.asyncio
    async def test_history_records_each_change(
        self, payment_service: PaymentService, confirmed_booking, test_guest, test_host
    ):
        await payment_service.update_payment(
            confirmed_booking.id, PaymentUpdate(payment_status=PaymentStatus.FAILED), test_guest
        )
        await payment_service.update_payment(
            confirmed_booking.id, PaymentUpdate(payment_status=PaymentStatus.PAID, payment_notes="Retried"), test_host
        )

        history = await payment_service.get_payment_history(confirmed_booking.id, test_guest)
        # Newest first
        assert [(h.previous_status, h.new_status) for h in history] == [
            (PaymentStatus.FAILED, PaymentStatus.PAID),
            (PaymentStatus.PENDING, PaymentStatus.FAILED),
        ]
        assert history[0].updated_by_id == test_host.id
        assert history[0].notes == "Retried"

    @pytest.mark.asyncio
    async def test_disallowed_transition(self, payment_service: PaymentService, confirmed_booking, test_guest):
        with pytest.raises(BookingStatusTransitionError, match="Cannot change payment status from pending to refunded"):
            await payment_service.update_payment(
                confirmed_booking.id, PaymentUpdate(payment_status=PaymentStatus.REFUNDED), test_guest
            )

    @pytest.mark.asyncio
    async def test_outsider_cannot_touch_payment(self, payment_service: PaymentService, confirmed_booking, other_guest):
        with pytest.raises(ForbiddenError):
            await payment_service.update_payment(
                confirmed_booking.id, PaymentUpdate(payment_status=PaymentStatus.PAID), other_guest
            )

    @pytest.mark.asyncio
    async def test_refunded_payment_details_stay_editable(
        self, payment_service: PaymentService, booking_repository, test_property, test_guest
    ):
        refunded = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest,
            status=BookingStatus.REFUNDED, payment_status=PaymentStatus.REFUNDED
        )

        booking = await payment_service.update_payment(
            refunded.id, PaymentUpdate(payment_reference="RF-2231", payment_notes="Bank slip attached"), test_guest
        )
        assert booking.payment_status == PaymentStatus.REFUNDED
        assert booking.payment_reference == "RF-2231"

        with pytest.raises(ForbiddenError, match="change the status of refunded payments"):
            await payment_service.update_payment(refunded.id, PaymentUpdate(payment_status=PaymentStatus.PAID), test_guest)


class TestRefunds:
    """Test accumulating refunds on cancelled bookings."""

    @pytest.mark.asyncio
    async def test_partial_then_full_refund(
        self, payment_service: PaymentService, paid_cancelled_booking, test_admin, test_guest
    ):
        booking, refund = await payment_service.process_refund(
            paid_cancelled_booking.id,
            RefundRequest(refund_amount=Decimal("185.00"), refund_reason="Host cancelled late"),
            test_admin,
        )
        assert refund.refund_amount == Decimal("185.00")
        assert booking.payment_status == PaymentStatus.PARTIAL
        assert booking.status == BookingStatus.CANCELLED
        assert booking.refund_amount == Decimal("185.00")

        booking, _ = await payment_service.process_refund(
            paid_cancelled_booking.id,
            RefundRequest(refund_amount=Decimal("500.00"), refund_reason="Remainder"),
            test_admin,
        )
        assert booking.payment_status == PaymentStatus.REFUNDED
        assert booking.status == BookingStatus.REFUNDED

        financials = await payment_service.get_financials(paid_cancelled_booking.id, test_guest)
        assert financials["total_amount"] == 685.0
        assert financials["total_refunded"] == 685.0
        assert financials["net_amount"] == 0.0
        assert len(financials["refunds"]) == 2

    @pytest.mark.asyncio
    async def test_refund_cannot_exceed_balance(self, payment_service: PaymentService, paid_cancelled_booking, test_admin):
        with pytest.raises(BadRequestError, match="exceeds the refundable balance"):
            await payment_service.process_refund(
                paid_cancelled_booking.id,
                RefundRequest(refund_amount=Decimal("685.01"), refund_reason="Too much"),
                test_admin,
            )

    @pytest.mark.asyncio
    async def test_refund_needs_cancelled_booking(self, payment_service: PaymentService, confirmed_booking, test_admin):
        with pytest.raises(BadRequestError, match="Only cancelled bookings"):
            await payment_service.process_refund(
                confirmed_booking.id, RefundRequest(refund_amount=Decimal("10"), refund_reason="Nope"), test_admin
            )

    @pytest.mark.asyncio
    async def test_refund_needs_payment(
        self, payment_service: PaymentService, booking_repository, test_property, test_guest, test_admin
    ):
        unpaid = await BookingFactory.create_booking(
            booking_repository, test_property, test_guest, status=BookingStatus.CANCELLED
        )
        with pytest.raises(BadRequestError, match="paid or partially paid"):
            await payment_service.process_refund(
                unpaid.id, RefundRequest(refund_amount=Decimal("10"), refund_reason="Nope"), test_admin
            )

    @pytest.mark.asyncio
    async def test_only_admin_refunds(self, payment_service: PaymentService, paid_cancelled_booking, test_host):
        with pytest.raises(ForbiddenError):
            await payment_service.process_refund(
                paid_cancelled_booking.id, RefundRequest(refund_amount=Decimal("10"), refund_reason="Mine"), test_host
            )


class TestReviews:
    """Test review creation, moderation and rating aggregation."""

    @pytest.mark.asyncio
    async def test_review_updates_ratings(
        self, review_service: ReviewService, completed_booking, test_property, test_host, test_guest
    ):
        review = await review_service.create_review(
            completed_booking.id, ReviewCreate(rating=4, comment="Great stay", cleanliness_rating=5), test_guest
        )

        assert review.reviewee_id == test_host.id
        assert test_property.average_rating == Decimal("4.00")
        assert test_property.total_reviews == 1
        assert test_host.host_rating == Decimal("4.00")

    @pytest.mark.asyncio
    async def test_average_over_several_stays(
        self, review_service: ReviewService, booking_repository, test_property, test_guest, other_guest
    ):
        for guest, rating, offset in ((test_guest, 4, 30), (other_guest, 5, 40)):
            booking = await BookingFactory.create_booking(
                booking_repository, test_property, guest, check_in=days_from_now(offset), status=BookingStatus.COMPLETED
            )
            await review_service.create_review(booking.id, ReviewCreate(rating=rating), guest)

        assert test_property.average_rating == Decimal("4.50")
        assert test_property.total_reviews == 2

    @pytest.mark.asyncio
    async def test_duplicate_review_conflicts(self, review_service: ReviewService, completed_booking, test_guest):
        await review_service.create_review(completed_booking.id, ReviewCreate(rating=5), test_guest)

        with pytest.raises(ConflictError):
            await review_service.create_review(completed_booking.id, ReviewCreate(rating=1), test_guest)

    @pytest.mark.asyncio
    async def test_only_completed_stays(self, review_service: ReviewService, confirmed_booking, test_guest):
        with pytest.raises(BadRequestError, match="completed bookings"):
            await review_service.create_review(confirmed_booking.id, ReviewCreate(rating=5), test_guest)

    @pytest.mark.asyncio
    async def test_only_the_guest_reviews(self, review_service: ReviewService, completed_booking, test_host):
        with pytest.raises(ForbiddenError):
            await review_service.create_review(completed_booking.id, ReviewCreate(rating=5), test_host)

    @pytest.mark.asyncio
    async def test_hidden_review_leaves_rating(
        self, review_service: ReviewService, completed_booking, test_property, test_guest, test_admin
    ):
        review = await review_service.create_review(completed_booking.id, ReviewCreate(rating=2), test_guest)

        moderated = await review_service.moderate_review(
            review.id, ReviewModerationRequest(admin_action=ReviewModeration.HIDDEN, notes="Abusive"), test_admin
        )

        assert moderated.admin_action == ReviewModeration.HIDDEN
        assert moderated.moderated_by_id == test_admin.id
        assert test_property.total_reviews == 0
        assert test_property.average_rating == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_recalculate_all(self, review_service: ReviewService, completed_booking, test_guest):
        await review_service.create_review(completed_booking.id, ReviewCreate(rating=3), test_guest)

        assert await review_service.recalculate_all() == {"properties_updated": 1, "hosts_updated": 1}


class TestPaymentEndpoints:
    @pytest.mark.asyncio
    async def test_payment_and_financials_over_http(self, async_client, confirmed_booking, test_guest):
        response = await async_client.put(
            f"/api/v1/bookings/{confirmed_booking.id}/payment",
            json={"payment_status": "paid", "payment_method": "card"},
            headers=auth_headers(test_guest),
        )
        assert response.status_code == 200
        assert response.json()["payment_status"] == "paid"

        financials = await async_client.get(
            f"/api/v1/bookings/{confirmed_booking.id}/financials", headers=auth_headers(test_guest)
        )
        assert financials.status_code == 200
        assert financials.json()["net_amount"] == 685.0

    @pytest.mark.asyncio
    async def test_review_over_http(self, async_client, completed_booking, test_guest):
        url = f"/api/v1/bookings/{completed_booking.id}/review"

        created = await async_client.post(url, json={"rating": 5, "comment": "Spotless"}, headers=auth_headers(test_guest))
        duplicate = await async_client.post(url, json={"rating": 4}, headers=auth_headers(test_guest))

        assert created.status_code == 201
        assert created.json()["rating"] == 5
        assert duplicate.status_code == 409
