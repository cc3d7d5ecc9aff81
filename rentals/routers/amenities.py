"""
Amenity catalogue endpoints.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Path, status

from rentals.models.amenity import AmenityCategory
from rentals.models.user import User
from rentals.services.amenity import AmenityService
from rentals.schemas.amenity import (
    AmenityCreate,
    AmenityUpdate,
    AmenityResponse,
    AmenityListResponse,
    AmenityUsage
)
from rentals.schemas.error import get_crud_error_responses
from rentals.utils.dependencies import get_amenity_service, get_current_admin_user


router = APIRouter(prefix="/amenities", tags=["Amenities"])


@router.get(
    "",
    response_model=AmenityListResponse,
    summary="List amenities",
    description="Active amenities, optionally filtered by category, also grouped by category"
)
async def list_amenities(
    category: Optional[AmenityCategory] = Query(None),
    amenity_service: AmenityService = Depends(get_amenity_service)
) -> AmenityListResponse:
    amenities = await amenity_service.list_amenities(category=category)
    return AmenityListResponse(
        amenities=[AmenityResponse.model_validate(amenity.to_dict()) for amenity in amenities],
        grouped=amenity_service.group_by_category(amenities)
    )


@router.get("/stats", response_model=List[AmenityUsage], summary="Amenity usage statistics")
async def amenity_stats(
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service)
) -> List[AmenityUsage]:
    return [AmenityUsage.model_validate(row) for row in await amenity_service.usage_stats()]


@router.post(
    "",
    response_model=AmenityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create amenity",
    responses=get_crud_error_responses()
)
async def create_amenity(
    amenity_data: AmenityCreate,
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service)
) -> AmenityResponse:
    amenity = await amenity_service.create_amenity(amenity_data)
    return AmenityResponse.model_validate(amenity.to_dict())


@router.put("/{amenity_id}", response_model=AmenityResponse, summary="Update amenity")
async def update_amenity(
    amenity_data: AmenityUpdate,
    amenity_id: UUID = Path(..., description="Amenity ID"),
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service)
) -> AmenityResponse:
    amenity = await amenity_service.update_amenity(amenity_id, amenity_data)
    return AmenityResponse.model_validate(amenity.to_dict())


@router.delete("/{amenity_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete amenity")
async def delete_amenity(
    amenity_id: UUID = Path(..., description="Amenity ID"),
    current_user: User = Depends(get_current_admin_user),
    amenity_service: AmenityService = Depends(get_amenity_service)
) -> None:
    """
    Raises:
        BadRequestError: While the amenity is assigned to properties
    """
    await amenity_service.delete_amenity(amenity_id)
