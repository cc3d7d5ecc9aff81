"""
Dashboard statistics and user administration endpoints.
"""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Path

from rentals.models.user import User, UserRole
from rentals.services.analytics import AnalyticsService
from rentals.schemas.analytics import HostStats, AdminStats, UserStatusUpdate
from rentals.schemas.user import UserResponse, UserListResponse
from rentals.schemas.common import pagination_meta
from rentals.utils.dependencies import (
    get_analytics_service,
    get_current_admin_user,
    get_current_host_user
)
from rentals.config import settings


router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/host/stats", response_model=HostStats, summary="Host dashboard statistics")
async def host_stats(
    current_user: User = Depends(get_current_host_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> HostStats:
    return HostStats.model_validate(await analytics_service.host_stats(current_user))


@router.get("/admin/stats", response_model=AdminStats, summary="Platform statistics")
async def admin_stats(
    current_user: User = Depends(get_current_admin_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> AdminStats:
    return AdminStats.model_validate(await analytics_service.admin_stats())


@router.get("/admin/users", response_model=UserListResponse, summary="List users")
async def list_users(
    search: Optional[str] = Query(None, description="Matches email, first or last name"),
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    current_user: User = Depends(get_current_admin_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> UserListResponse:
    page_size = min(limit, settings.max_page_size)
    users, total = await analytics_service.list_users(search=search, role=role, page=page, page_size=page_size)
    return UserListResponse(
        users=[UserResponse.model_validate(user.to_dict()) for user in users],
        **pagination_meta(total, page, page_size)
    )


@router.put("/admin/users/{user_id}/status", response_model=UserResponse, summary="Set user status")
async def update_user_status(
    status_data: UserStatusUpdate,
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> UserResponse:
    """
    Raises:
        BadRequestError: If an admin tries to deactivate their own account
    """
    user = await analytics_service.update_user_status(user_id, status_data, current_user)
    return UserResponse.model_validate(user.to_dict())


@router.put("/admin/users/{user_id}/approve-host", response_model=UserResponse, summary="Approve host")
async def approve_host(
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> UserResponse:
    user = await analytics_service.approve_host(user_id, current_user)
    return UserResponse.model_validate(user.to_dict())
