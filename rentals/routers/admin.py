"""
Admin moderation endpoints.
Every route requires an admin and every mutation is written to the admin action log.
"""

from typing import Optional, List
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Path, status

from rentals.models.user import User
from rentals.models.property import PropertyStatus
from rentals.models.booking import BookingStatus, PaymentStatus
from rentals.models.review import ReviewModeration
from rentals.services.admin import AdminService
from rentals.services.amenity import AmenityService
from rentals.schemas.admin import (
    PropertyApproval,
    PropertyRejection,
    AdminBookingCancel,
    AdminPropertyListResponse,
    AdminBookingListResponse,
    AdminReviewListResponse,
    AdminLogResponse,
    AdminLogListResponse,
)
from rentals.schemas.amenity import AmenityCreate, AmenityUpdate, AmenityResponse
from rentals.schemas.booking import BookingResponse
from rentals.schemas.payment import RefundRequest, RefundResult
from rentals.schemas.property import PropertyResponse, PropertySummary, PropertyStatusHistoryResponse
from rentals.schemas.review import ReviewResponse, ReviewModerationRequest
from rentals.schemas.common import pagination_meta
from rentals.routers.bookings import refund_result
from rentals.utils.dependencies import get_admin_service, get_amenity_service, get_current_admin_user
from rentals.config import settings


router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_current_admin_user)])


# Properties

@router.get("/properties", response_model=AdminPropertyListResponse, summary="List properties for moderation")
async def list_properties(
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Matches title, city or host email"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminPropertyListResponse:
    page_size = min(limit, settings.max_page_size)
    properties, total = await admin_service.list_properties(
        status=status_filter, search=search, page=page, page_size=page_size
    )
    return AdminPropertyListResponse(
        properties=[PropertySummary.model_validate(prop.to_summary()) for prop in properties],
        **pagination_meta(total, page, page_size)
    )


@router.get(
    "/properties/{property_id}/history",
    response_model=List[PropertyStatusHistoryResponse],
    summary="Property status history"
)
async def property_history(
    property_id: UUID = Path(..., description="Property ID"),
    admin_service: AdminService = Depends(get_admin_service)
) -> List[PropertyStatusHistoryResponse]:
    history = await admin_service.property_history(property_id)
    return [PropertyStatusHistoryResponse.model_validate(entry.to_dict()) for entry in history]


@router.put("/properties/{property_id}/approve", response_model=PropertyResponse, summary="Approve property")
async def approve_property(
    approval: Optional[PropertyApproval] = None,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> PropertyResponse:
    property_obj = await admin_service.approve_property(property_id, approval or PropertyApproval(), current_user)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.put("/properties/{property_id}/reject", response_model=PropertyResponse, summary="Reject property")
async def reject_property(
    rejection: PropertyRejection,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> PropertyResponse:
    property_obj = await admin_service.reject_property(property_id, rejection, current_user)
    return PropertyResponse.model_validate(property_obj.to_dict())


# Bookings

@router.get("/bookings", response_model=AdminBookingListResponse, summary="List all bookings")
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    search: Optional[str] = Query(None, description="Matches property title or guest email"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminBookingListResponse:
    page_size = min(limit, settings.max_page_size)
    bookings, total = await admin_service.list_bookings(
        status=status_filter, payment_status=payment_status, search=search, page=page, page_size=page_size
    )
    return AdminBookingListResponse(
        bookings=[BookingResponse.model_validate(booking.to_dict()) for booking in bookings],
        **pagination_meta(total, page, page_size)
    )


@router.put("/bookings/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel booking as admin")
async def cancel_booking(
    cancel_data: AdminBookingCancel,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> BookingResponse:
    booking = await admin_service.cancel_booking(booking_id, cancel_data, current_user)
    return BookingResponse.model_validate(booking.to_dict())


@router.post("/bookings/{booking_id}/refund", response_model=RefundResult, summary="Refund booking")
async def refund_booking(
    refund_data: RefundRequest,
    booking_id: UUID = Path(..., description="Booking ID"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> RefundResult:
    booking, refund = await admin_service.refund_booking(booking_id, refund_data, current_user)
    return refund_result(booking, refund)


# Reviews

@router.get("/reviews", response_model=AdminReviewListResponse, summary="List reviews for moderation")
async def list_reviews(
    admin_action: Optional[ReviewModeration] = Query(None),
    rating: Optional[int] = Query(None, ge=1, le=5),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminReviewListResponse:
    page_size = min(limit, settings.max_page_size)
    reviews, total = await admin_service.list_reviews(admin_action, rating, page=page, page_size=page_size)
    return AdminReviewListResponse(
        reviews=[ReviewResponse.model_validate(review.to_dict()) for review in reviews],
        **pagination_meta(total, page, page_size)
    )


@router.put("/reviews/{review_id}/moderate", response_model=ReviewResponse, summary="Moderate review")
async def moderate_review(
    moderation: ReviewModerationRequest,
    review_id: UUID = Path(..., description="Review ID"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> ReviewResponse:
    review = await admin_service.moderate_review(review_id, moderation, current_user)
    return ReviewResponse.model_validate(review.to_dict())


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete review")
async def delete_review(
    review_id: UUID = Path(..., description="Review ID"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> None:
    await admin_service.delete_review(review_id, current_user)


# Amenities

@router.get("/amenities", response_model=List[AmenityResponse], summary="List all amenities")
async def list_amenities(
    amenity_service: AmenityService = Depends(get_amenity_service)
) -> List[AmenityResponse]:
    amenities = await amenity_service.list_amenities(include_inactive=True)
    return [AmenityResponse.model_validate(amenity.to_dict()) for amenity in amenities]


@router.post(
    "/amenities",
    response_model=AmenityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create amenity"
)
async def create_amenity(
    amenity_data: AmenityCreate,
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service),
    admin_service: AdminService = Depends(get_admin_service)
) -> AmenityResponse:
    amenity = await amenity_service.create_amenity(amenity_data)
    await admin_service.log_action(current_user, "create_amenity", "amenity", amenity.id, amenity.name)
    return AmenityResponse.model_validate(amenity.to_dict())


@router.put("/amenities/{amenity_id}", response_model=AmenityResponse, summary="Update amenity")
async def update_amenity(
    amenity_data: AmenityUpdate,
    amenity_id: UUID = Path(..., description="Amenity ID"),
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service),
    admin_service: AdminService = Depends(get_admin_service)
) -> AmenityResponse:
    amenity = await amenity_service.update_amenity(amenity_id, amenity_data)
    await admin_service.log_action(current_user, "update_amenity", "amenity", amenity.id, amenity.name)
    return AmenityResponse.model_validate(amenity.to_dict())


@router.delete("/amenities/{amenity_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete amenity")
async def delete_amenity(
    amenity_id: UUID = Path(..., description="Amenity ID"),
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service),
    admin_service: AdminService = Depends(get_admin_service)
) -> None:
    await amenity_service.delete_amenity(amenity_id)
    await admin_service.log_action(current_user, "delete_amenity", "amenity", amenity_id)


# Audit log

@router.get("/logs", response_model=AdminLogListResponse, summary="Admin action log")
async def list_logs(
    action: Optional[str] = Query(None),
    target_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminLogListResponse:
    page_size = min(limit, settings.max_page_size)
    logs, total = await admin_service.list_logs(action=action, target_type=target_type, page=page, page_size=page_size)
    return AdminLogListResponse(
        logs=[AdminLogResponse.model_validate(entry.to_dict()) for entry in logs],
        **pagination_meta(total, page, page_size)
    )
