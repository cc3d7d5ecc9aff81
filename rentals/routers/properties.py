"""
Property management API endpoints for search, CRUD, amenities and calendar blocks.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional, List
from datetime import date
from decimal import Decimal
from uuid import UUID

from rentals.models.user import User
from rentals.models.property import PropertyType, PropertyStatus
from rentals.repositories.property import PropertySearchFilters
from rentals.services.property import PropertyService
from rentals.services.review import ReviewService
from rentals.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertySummary,
    PropertyListResponse,
    PropertyAmenitiesUpdate,
    BlockedDateCreate,
    BlockedDateResponse,
)
from rentals.schemas.amenity import AmenityResponse
from rentals.schemas.review import ReviewResponse, ReviewListResponse
from rentals.schemas.common import pagination_meta
from rentals.schemas.error import get_crud_error_responses, get_common_error_responses
from rentals.utils.dependencies import (
    get_current_active_user,
    get_current_host_user,
    get_optional_current_user,
    get_property_service,
    get_review_service
)
from rentals.utils.exceptions import BadRequestError
from rentals.config import settings


router = APIRouter(prefix="/properties", tags=["Properties"])


def _parse_amenity_ids(raw: Optional[str]) -> List[UUID]:
    if not raw:
        return []
    try:
        return [UUID(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise BadRequestError("amenities must be a comma-separated list of amenity ids")


def _property_list(properties, total: int, page: int, page_size: int) -> PropertyListResponse:
    return PropertyListResponse(
        properties=[PropertySummary.model_validate(prop.to_summary()) for prop in properties],
        **pagination_meta(total, page, page_size)
    )


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="Search properties",
    description="Public search over active listings with filters, date availability and sorting"
)
async def search_properties(
    location: Optional[str] = Query(None, description="Matches city, address or country"),
    guests: Optional[int] = Query(None, ge=1, description="Minimum guest capacity"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    property_type: Optional[PropertyType] = Query(None),
    bedrooms: Optional[int] = Query(None, ge=0),
    bathrooms: Optional[Decimal] = Query(None, ge=0),
    amenities: Optional[str] = Query(None, description="Comma-separated amenity ids; all must match"),
    check_in: Optional[date] = Query(None),
    check_out: Optional[date] = Query(None),
    sort_by: str = Query("created_at", pattern="^(price_per_night|average_rating|created_at|total_reviews)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    filters = PropertySearchFilters(
        location=location,
        guests=guests,
        min_price=min_price,
        max_price=max_price,
        property_type=property_type,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        amenity_ids=_parse_amenity_ids(amenities),
        check_in=check_in,
        check_out=check_out,
    )
    page_size = min(limit, settings.max_page_size)
    properties, total = await property_service.search_properties(
        filters, page=page, page_size=page_size, sort_by=sort_by, sort_order=sort_order
    )
    return _property_list(properties, total, page, page_size)


@router.get(
    "/host/my-properties",
    response_model=PropertyListResponse,
    summary="List my properties",
    description="The current host's listings of any status"
)
async def list_my_properties(
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1),
    current_user: User = Depends(get_current_host_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    page_size = min(limit, settings.max_page_size)
    properties, total = await property_service.get_host_properties(
        current_user.id, status=status_filter, page=page, page_size=page_size
    )
    return _property_list(properties, total, page, page_size)


@router.get(
    "/host/{host_id}",
    response_model=PropertyListResponse,
    summary="List a host's active properties"
)
async def list_host_properties(
    host_id: UUID = Path(..., description="Host ID"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    page_size = min(limit, settings.max_page_size)
    properties, total = await property_service.get_host_properties(
        host_id, status=PropertyStatus.ACTIVE, page=page, page_size=page_size
    )
    return _property_list(properties, total, page, page_size)


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a listing. Requires a host account or the admin role.",
    responses=get_crud_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.
    
    Raises:
        InsufficientPermissionsError: If the user is not a host or admin
        BadRequestError: If an amenity id is unknown
    """
    property_obj = await property_service.create_property(property_data, current_user)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property details",
    description="Details with images, active amenities, recent reviews and host summary",
    responses=get_common_error_responses()
)
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    details = await property_service.get_property_details(property_id, current_user)
    return PropertyResponse.model_validate(details)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Only the owner or an admin. Hosts may only set draft or pending.",
    responses=get_crud_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Soft delete: the listing becomes inactive. Refused while open bookings exist."
)
async def delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> None:
    await property_service.delete_property(property_id, current_user)


@router.get("/{property_id}/amenities", response_model=List[AmenityResponse], summary="List property amenities")
async def get_property_amenities(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[AmenityResponse]:
    amenities = await property_service.get_amenities(property_id, current_user)
    return [AmenityResponse.model_validate(amenity.to_dict()) for amenity in amenities]


@router.put("/{property_id}/amenities", response_model=List[AmenityResponse], summary="Replace property amenities")
async def set_property_amenities(
    amenity_data: PropertyAmenitiesUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[AmenityResponse]:
    amenities = await property_service.set_amenities(property_id, amenity_data.amenity_ids, current_user)
    return [AmenityResponse.model_validate(amenity.to_dict()) for amenity in amenities]


@router.get("/{property_id}/blocked-dates", response_model=List[BlockedDateResponse], summary="List blocked dates")
async def get_blocked_dates(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[BlockedDateResponse]:
    blocked = await property_service.get_blocked_dates(property_id, current_user)
    return [BlockedDateResponse.model_validate(day.to_dict()) for day in blocked]


@router.post(
    "/{property_id}/blocked-dates",
    response_model=List[BlockedDateResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Block calendar days"
)
async def block_dates(
    blocked_data: BlockedDateCreate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[BlockedDateResponse]:
    blocked = await property_service.block_dates(property_id, blocked_data, current_user)
    return [BlockedDateResponse.model_validate(day.to_dict()) for day in blocked]


@router.delete(
    "/{property_id}/blocked-dates/{blocked_date}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unblock a calendar day"
)
async def unblock_date(
    blocked_date: date,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> None:
    await property_service.unblock_date(property_id, blocked_date, current_user)


@router.get(
    "/{property_id}/reviews",
    response_model=ReviewListResponse,
    summary="List property reviews",
    description="Published, non-hidden reviews, newest first"
)
async def list_property_reviews(
    property_id: UUID = Path(..., description="Property ID"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewListResponse:
    page_size = min(limit, settings.max_page_size)
    reviews, total = await review_service.list_property_reviews(property_id, page=page, page_size=page_size)
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(review.to_dict()) for review in reviews],
        **pagination_meta(total, page, page_size)
    )
