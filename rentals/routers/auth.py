"""
Authentication API endpoints for registration, login, token management and profiles.
"""

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional

from rentals.models.user import User
from rentals.services.auth import AuthService
from rentals.schemas.auth import (
    LoginRequest,
    AuthResponse,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    TokenValidationResponse
)
from rentals.schemas.user import UserCreate, UserUpdate, PasswordChange, UserResponse
from rentals.schemas.common import MessageResponse
from rentals.schemas.error import get_auth_error_responses, get_crud_error_responses
from rentals.utils.dependencies import (
    get_auth_service,
    get_current_active_user,
    security
)
from rentals.config import settings


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(user: User, access_token: str, refresh_token: str) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user.to_dict()),
        tokens=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=settings.access_token_expire_minutes * 60
        )
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create a guest or host account and return a token pair",
    responses=get_crud_error_responses()
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Register a new user.
    
    Raises:
        ConflictError: If the email is already registered
        ForbiddenError: If an admin account is requested
    """
    user, access_token, refresh_token = await auth_service.register(user_data)
    return _auth_response(user, access_token, refresh_token)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens"
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Authenticate user and return JWT tokens.
    
    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )
    return _auth_response(user, access_token, refresh_token)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token"
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get current user",
    responses=get_auth_error_responses()
)
async def get_profile(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update profile",
    description="Update name, phone, profile image and date of birth"
)
async def update_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_profile(current_user, update_data)
    return UserResponse.model_validate(user.to_dict())


@router.put(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password"
)
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.change_password(current_user, password_data)
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/validate",
    response_model=TokenValidationResponse,
    summary="Validate token",
    description="Report whether the bearer token is valid, with its user"
)
async def validate_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> TokenValidationResponse:
    if not credentials:
        return TokenValidationResponse(valid=False)
    
    user = await auth_service.validate_token(credentials.credentials)
    if user is None:
        return TokenValidationResponse(valid=False)
    return TokenValidationResponse(valid=True, user=UserResponse.model_validate(user.to_dict()))
