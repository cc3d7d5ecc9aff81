"""
Favorite (saved property) endpoints.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, Path, Response, status

from rentals.models.user import User
from rentals.services.favorite import FavoriteService
from rentals.schemas.notification import FavoriteResponse, FavoriteListResponse
from rentals.utils.dependencies import get_current_active_user, get_favorite_service


router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("", response_model=FavoriteListResponse, summary="List favorites")
async def list_favorites(
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteListResponse:
    favorites = await favorite_service.list_favorites(current_user)
    return FavoriteListResponse(favorites=[FavoriteResponse.model_validate(f.to_dict()) for f in favorites])


@router.post(
    "/{property_id}",
    response_model=FavoriteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add favorite",
    description="Idempotent: re-adding returns the existing favorite with 200"
)
async def add_favorite(
    response: Response,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteResponse:
    favorite, created = await favorite_service.add_favorite(current_user, property_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return FavoriteResponse.model_validate(favorite.to_dict())


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove favorite")
async def remove_favorite(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> None:
    await favorite_service.remove_favorite(current_user, property_id)
