"""
Authentication service for registration, login, token management and profile changes.
"""

from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.repositories.user import UserRepository
from rentals.models.user import User, UserRole
from rentals.database import utcnow
from rentals.schemas.user import UserCreate, UserUpdate, PasswordChange
from rentals.utils.auth import create_access_token, create_refresh_token, verify_token
from rentals.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ForbiddenError,
    BadRequestError,
    DuplicateResourceError,
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing accounts and tokens.
    Handles registration, login, refresh, profile updates and host upgrades.
    """
    
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
    
    async def register(self, user_data: UserCreate) -> Tuple[User, str, str]:
        """
        Create an account and issue tokens.
        
        Args:
            user_data: Registration data
            
        Returns:
            Tuple of (user, access_token, refresh_token)
            
        Raises:
            ForbiddenError: If an admin account is requested
            DuplicateResourceError: If the email is already registered
        """
        try:
            if user_data.role == UserRole.ADMIN:
                raise ForbiddenError("Admin accounts cannot be self-registered")
            
            if await self.user_repo.get_by_email(user_data.email):
                raise DuplicateResourceError("User", user_data.email)
            
            create_data = user_data.model_dump()
            if user_data.role == UserRole.HOST:
                create_data.update(is_host=True, host_approved=False)
            
            user = await self.user_repo.create_user(create_data)
            access_token, refresh_token = self.create_tokens(user)
            
            logger.info(f"User registered: {user.email} (ID: {user.id}, role: {user.role.value})")
            return user, access_token, refresh_token
        
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to register user {user_data.email}: {e}")
            raise BadRequestError(f"Failed to register user: {str(e)}")
    
    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.
        
        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.user_repo.authenticate_user(email, password)
        
        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()
        
        if not user.is_active:
            logger.warning(f"Login rejected for inactive account: {email}")
            raise InactiveUserError()
        
        return user
    
    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Create an (access_token, refresh_token) pair for a user."""
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token
    
    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user, record the login time and create tokens.
        
        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        user = await self.user_repo.save(user, {"last_login": utcnow()})
        access_token, refresh_token = self.create_tokens(user)
        
        logger.info(f"User logged in: {user.email}")
        return user, access_token, refresh_token
    
    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.
        
        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        user = await self._user_from_token(refresh_token, token_type="refresh")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)
    
    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.
        
        Raises:
            InvalidTokenError: If token is invalid or the user no longer exists
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        return await self._user_from_token(token, token_type="access")
    
    async def validate_token(self, token: str) -> Optional[User]:
        """Return the token's user when the token is valid, None otherwise."""
        try:
            return await self.get_current_user(token)
        except (InvalidTokenError, TokenExpiredError, InactiveUserError):
            return None
    
    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            payload = verify_token(token, token_type=token_type)
            user_id = uuid.UUID(payload.user_id)
        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))
        except ValueError:
            raise InvalidTokenError("Invalid token subject")
        
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user
    
    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user
    
    async def update_profile(self, user: User, update_data: UserUpdate) -> User:
        """Update the caller's own profile fields."""
        changes = update_data.model_dump(exclude_unset=True)
        if not changes:
            return user
        
        try:
            updated = await self.user_repo.save(user, changes)
            logger.info(f"Profile updated for user {user.id}: {sorted(changes)}")
            return updated
        except Exception as e:
            logger.error(f"Failed to update profile for user {user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")
    
    async def change_password(self, user: User, data: PasswordChange) -> User:
        """
        Change the caller's password after verifying the current one.
        
        Raises:
            InvalidCredentialsError: If current password is incorrect
        """
        if not user.verify_password(data.current_password):
            logger.warning(f"Password change rejected for user {user.id}: wrong current password")
            raise InvalidCredentialsError("Current password is incorrect")
        
        updated = await self.user_repo.update_password(user.id, data.new_password)
        logger.info(f"Password changed for user: {user.id}")
        return updated
    
    async def become_host(self, user: User) -> User:
        """
        Turn a guest account into a host account awaiting approval.
        
        Raises:
            BadRequestError: If the user is already a host
        """
        if user.is_host:
            raise BadRequestError("User is already a host")
        
        changes = {"is_host": True, "host_approved": False}
        if user.role != UserRole.ADMIN:
            changes["role"] = UserRole.HOST
        
        updated = await self.user_repo.save(user, changes)
        logger.info(f"User {user.id} became a host")
        return updated
