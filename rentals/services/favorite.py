"""
Favorite service: a user's saved properties.
"""

from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from rentals.models.favorite import Favorite
from rentals.models.user import User
from rentals.repositories.favorite import FavoriteRepository
from rentals.services.property import PropertyService
from rentals.utils.exceptions import NotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.property_service = PropertyService(db_session)
    
    async def list_favorites(self, user: User) -> List[Favorite]:
        return await self.favorite_repo.list_for_user(user.id)
    
    async def add_favorite(self, user: User, property_id: uuid.UUID) -> Tuple[Favorite, bool]:
        """
        Save a property. Re-adding returns the existing favorite.
        
        Returns:
            Tuple of (favorite, created)
        """
        await self.property_service.get_property(property_id, user)
        
        existing = await self.favorite_repo.get_for_user(user.id, property_id)
        if existing:
            return existing, False
        
        try:
            favorite = await self.favorite_repo.create({"user_id": user.id, "property_id": property_id})
        except IntegrityError:
            # Lost a race with a concurrent insert of the same pair
            existing = await self.favorite_repo.get_for_user(user.id, property_id)
            if existing is None:
                raise
            return existing, False
        
        logger.info(f"User {user.id} favorited property {property_id}")
        return favorite, True
    
    async def remove_favorite(self, user: User, property_id: uuid.UUID) -> None:
        favorite = await self.favorite_repo.get_for_user(user.id, property_id)
        if not favorite:
            raise NotFoundError("Favorite", str(property_id))
        await self.favorite_repo.delete(favorite.id)
        logger.info(f"User {user.id} removed favorite {property_id}")
