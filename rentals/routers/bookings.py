"""
Booking API endpoints: availability, pricing, lifecycle, payments, refunds and reviews.
"""

from fastapi import APIRouter, Depends, Query, Path, status
from typing import Optional, List
from datetime import date
from uuid import UUID

from rentals.models.user import User, UserRole
from rentals.models.booking import BookingStatus
from rentals.repositories.booking import BookingListFilters
from rentals.services.booking import BookingService
from rentals.services.payment import PaymentService
from rentals.services.review import ReviewService
from rentals.schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingDetailResponse,
    BookingListResponse,
    BookingStatusUpdate,
    BookingCancelRequest,
    PricingRequest,
    PricingResponse,
    AvailabilityResponse,
    BookedDatesResponse,
)
from rentals.schemas.payment import (
    PaymentUpdate,
    PaymentHistoryResponse,
    RefundRequest,
    RefundResponse,
    RefundResult,
    FinancialSummary,
)
from rentals.schemas.review import ReviewCreate, ReviewResponse, RatingRecalculationResponse
from rentals.schemas.common import pagination_meta
from rentals.schemas.error import get_crud_error_responses, get_common_error_responses
from rentals.utils.dependencies import (
    get_booking_service,
    get_payment_service,
    get_review_service,
    get_current_active_user,
    get_current_admin_user,
    require_roles
)
from rentals.config import settings


router = APIRouter(prefix="/bookings", tags=["Bookings"])

require_guest_or_admin = require_roles(UserRole.GUEST, UserRole.ADMIN)


# Public availability and pricing

@router.get(
    "/properties/{property_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check availability",
    description="Run the booking validation for a stay without creating anything",
    responses=get_common_error_responses()
)
async def check_availability(
    property_id: UUID = Path(..., description="Property ID"),
    check_in_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    check_out_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    guests_count: int = Query(1, ge=1),
    booking_service: BookingService = Depends(get_booking_service)
) -> AvailabilityResponse:
    """
    Raises:
        BadRequestError: If a date is malformed or a stay rule fails
        DateConflictError: If the stay overlaps a booking or blocked day
    """
    result = await booking_service.check_availability(property_id, check_in_date, check_out_date, guests_count)
    return AvailabilityResponse.model_validate(result)


@router.get(
    "/properties/{property_id}/booked-dates",
    response_model=BookedDatesResponse,
    summary="Booked and blocked dates",
    description="Defaults to today through today + 180 days"
)
async def get_booked_dates(
    property_id: UUID = Path(..., description="Property ID"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookedDatesResponse:
    result = await booking_service.get_booked_dates(property_id, start_date, end_date)
    return BookedDatesResponse.model_validate(result)


@router.post("/pricing", response_model=PricingResponse, summary="Quote a stay")
async def quote_price(
    pricing_request: PricingRequest,
    booking_service: BookingService = Depends(get_booking_service)
) -> PricingResponse:
    return PricingResponse.model_validate(await booking_service.quote_price(pricing_request))


@router.post(
    "/reviews/recalculate",
    response_model=RatingRecalculationResponse,
    summary="Recalculate all ratings"
)
async def recalculate_ratings(
    current_user: User = Depends(get_current_admin_user),
    review_service: ReviewService = Depends(get_review_service)
) -> RatingRecalculationResponse:
    return RatingRecalculationResponse.model_validate(await review_service.recalculate_all())


# Lifecycle

@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
    description="Book a stay. Instant-book properties confirm immediately.",
    responses=get_crud_error_responses()
)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(require_guest_or_admin),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    booking, conversation = await booking_service.create_booking(booking_data, current_user)
    conversation_id = str(conversation.id) if conversation else None
    return BookingResponse.model_validate({**booking.to_dict(), "conversation_id": conversation_id})


@router.get("", response_model=BookingListResponse, summary="List bookings")
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    property_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None, description="Earliest check-in date"),
    end_date: Optional[date] = Query(None, description="Latest check-in date"),
    guest_id: Optional[UUID] = Query(None, description="Admin only"),
    host_id: Optional[UUID] = Query(None, description="Admin only"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingListResponse:
    """Admins see all bookings, hosts the ones they host or made, guests their own."""
    filters = BookingListFilters(
        status=status_filter,
        property_id=property_id,
        start_date=start_date,
        end_date=end_date,
        guest_id=guest_id,
        host_id=host_id,
    )
    page_size = min(limit, settings.max_page_size)
    bookings, total = await booking_service.list_bookings(current_user, filters, page=page, page_size=page_size)
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(booking.to_dict()) for booking in bookings],
        **pagination_meta(total, page, page_size)
    )


@router.get(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    summary="Get booking",
    responses=get_common_error_responses()
)
async def get_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingDetailResponse:
    booking = await booking_service.get_booking(booking_id, current_user)
    permissions = await booking_service.get_permissions(booking, current_user)
    return BookingDetailResponse.model_validate({**booking.to_dict(), "permissions": permissions})


@router.put("/{booking_id}/status", response_model=BookingResponse, summary="Update booking status")
async def update_booking_status(
    status_data: BookingStatusUpdate,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    """
    Raises:
        ForbiddenError: If the caller is not the host or an admin
        BookingStatusTransitionError: If the transition is not allowed
    """
    booking = await booking_service.update_status(booking_id, status_data, current_user)
    return BookingResponse.model_validate(booking.to_dict())


@router.post("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel booking")
async def cancel_booking(
    cancel_data: Optional[BookingCancelRequest] = None,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    reason = cancel_data.cancellation_reason if cancel_data else None
    booking = await booking_service.cancel_booking(booking_id, current_user, cancellation_reason=reason)
    return BookingResponse.model_validate(booking.to_dict())


# Payments

@router.put("/{booking_id}/payment", response_model=BookingResponse, summary="Update payment")
async def update_payment(
    payment_data: PaymentUpdate,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> BookingResponse:
    booking = await payment_service.update_payment(booking_id, payment_data, current_user)
    return BookingResponse.model_validate(booking.to_dict())


@router.get("/{booking_id}/payment/history", response_model=List[PaymentHistoryResponse], summary="Payment history")
async def get_payment_history(
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> List[PaymentHistoryResponse]:
    history = await payment_service.get_payment_history(booking_id, current_user)
    return [PaymentHistoryResponse.model_validate(entry.to_dict()) for entry in history]


@router.post("/{booking_id}/refund", response_model=RefundResult, summary="Refund booking")
async def refund_booking(
    refund_data: RefundRequest,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_admin_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> RefundResult:
    booking, refund = await payment_service.process_refund(booking_id, refund_data, current_user)
    return refund_result(booking, refund)


@router.get("/{booking_id}/financials", response_model=FinancialSummary, summary="Financial summary")
async def get_financials(
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> FinancialSummary:
    return FinancialSummary.model_validate(await payment_service.get_financials(booking_id, current_user))


# Reviews

@router.post(
    "/{booking_id}/review",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a completed stay",
    responses=get_crud_error_responses()
)
async def create_review(
    review_data: ReviewCreate,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(require_guest_or_admin),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    review = await review_service.create_review(booking_id, review_data, current_user)
    return ReviewResponse.model_validate(review.to_dict())


def refund_result(booking, refund) -> RefundResult:
    return RefundResult(
        refund=RefundResponse.model_validate(refund.to_dict()),
        booking_status=booking.status,
        payment_status=booking.payment_status,
        total_refunded=float(booking.refund_amount or 0),
    )
