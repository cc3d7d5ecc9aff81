"""
User repository for authentication and user management operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from rentals.repositories.base import BaseRepository
from rentals.models.user import User, UserRole
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts.
    Handles password hashing on create and credential checks on login.
    """
    
    def __init__(self, db: AsyncSession):
        super().__init__(User, db)
    
    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.
        
        Args:
            user_data: Dictionary containing user information
                      Must include: email, password, first_name, last_name
                      Optional: phone, role, is_host
            
        Returns:
            Created user instance
            
        Raises:
            ValueError: If validation fails or the email is taken
        """
        email = User.validate_email_format(user_data["email"])
        
        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")
        
        data = dict(user_data)
        password = data.pop("password")
        create_data = {
            **data,
            "email": email,
            "hashed_password": User.hash_password(password),
            "role": data.get("role", UserRole.GUEST),
            "is_active": data.get("is_active", True),
        }
        
        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user
    
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)."""
        normalized_email = email.lower().strip()
        result = await self.db.execute(select(User).where(User.email == normalized_email))
        return result.scalar_one_or_none()
    
    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Check email and password.
        
        Returns:
            The user when the credentials match, None otherwise. Inactive
            users are returned so the caller can report them distinctly.
        """
        user = await self.get_by_email(email)
        
        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None
        
        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None
        
        return user
    
    async def update_password(self, user_id: uuid.UUID, new_password: str) -> Optional[User]:
        """
        Update user's password with proper hashing.
        
        Raises:
            ValueError: If password validation fails
        """
        updated_user = await self.update(user_id, {"hashed_password": User.hash_password(new_password)})
        if updated_user:
            logger.info(f"Password updated for user: {updated_user.email}")
        return updated_user
    
    async def get_many(self, user_ids: List[uuid.UUID]) -> List[User]:
        if not user_ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        return list(result.scalars().all())
    
    async def search_users(
        self,
        search_term: Optional[str] = None,
        role: Optional[UserRole] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """
        Search users by email or name.
        
        Args:
            search_term: Term to search for in email, first or last name
            role: Optional role filter
            skip: Number of records to skip
            limit: Maximum number of records to return
            
        Returns:
            Tuple of (users list, total count)
        """
        query = select(User)
        
        if search_term:
            pattern = f"%{search_term}%"
            query = query.where(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )
        if role:
            query = query.where(User.role == role)
        
        return await self.paginate(query.order_by(User.created_at.desc()), skip, limit)
    
    async def count_created_between(self, start: datetime, end: datetime) -> int:
        result = await self.db.execute(
            select(func.count(User.id)).where(User.created_at >= start, User.created_at < end)
        )
        return result.scalar() or 0
