"""
Image management API endpoints.
Handles gallery upload, listing, update, reordering and deletion for a property.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, UploadFile, File, Path, status

from rentals.models.user import User
from rentals.services.image import ImageService
from rentals.schemas.image import (
    PropertyImageResponse,
    PropertyImageUpdate,
    ImageReorderRequest,
    ImageUploadResponse
)
from rentals.schemas.error import get_crud_error_responses
from rentals.utils.dependencies import (
    get_current_active_user,
    get_optional_current_user,
    get_image_service
)

router = APIRouter(prefix="/properties/{property_id}/images", tags=["Images"])


@router.get("", response_model=List[PropertyImageResponse], summary="List property images")
async def list_images(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    """Images in display order."""
    images = await image_service.list_images(property_id, current_user)
    return [PropertyImageResponse.model_validate(image.to_dict()) for image in images]


@router.post(
    "",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload property images",
    description="Upload up to 10 JPEG, PNG or WebP images. Owner or admin only.",
    responses=get_crud_error_responses()
)
async def upload_images(
    property_id: UUID = Path(..., description="Property ID"),
    files: List[UploadFile] = File(..., description="Image files to upload"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    """
    Raises:
        PropertyNotFoundError: If the property doesn't exist
        FileUploadError: If a file fails validation
    """
    images = await image_service.upload_images(property_id, files, current_user)
    return ImageUploadResponse(
        images=[PropertyImageResponse.model_validate(image.to_dict()) for image in images],
        uploaded=len(images)
    )


# Declared before /{image_id} so "reorder" is not parsed as an image id
@router.put("/reorder", response_model=List[PropertyImageResponse], summary="Reorder property images")
async def reorder_images(
    reorder_data: ImageReorderRequest,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[PropertyImageResponse]:
    images = await image_service.reorder_images(property_id, reorder_data.image_ids, current_user)
    return [PropertyImageResponse.model_validate(image.to_dict()) for image in images]


@router.put("/{image_id}", response_model=PropertyImageResponse, summary="Update image")
async def update_image(
    image_data: PropertyImageUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    image_id: UUID = Path(..., description="Image ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> PropertyImageResponse:
    image = await image_service.update_image(property_id, image_id, image_data, current_user)
    return PropertyImageResponse.model_validate(image.to_dict())


@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete image")
async def delete_image(
    property_id: UUID = Path(..., description="Property ID"),
    image_id: UUID = Path(..., description="Image ID"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> None:
    await image_service.delete_image(property_id, image_id, current_user)
