"""
Account endpoints for the current user.
"""

from fastapi import APIRouter, Depends, status

from rentals.models.user import User
from rentals.services.auth import AuthService
from rentals.schemas.user import UserResponse
from rentals.schemas.error import get_auth_error_responses
from rentals.utils.dependencies import get_auth_service, get_current_active_user


router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    responses=get_auth_error_responses()
)
async def get_me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.post(
    "/become-host",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Become a host",
    description="Turn the current account into a host account awaiting admin approval"
)
async def become_host(
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    """
    Raises:
        BadRequestError: If the user is already a host
    """
    user = await auth_service.become_host(current_user)
    return UserResponse.model_validate(user.to_dict())
