"""
Amenity service for the catalogue of features attachable to listings.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from rentals.repositories.amenity import AmenityRepository
from rentals.models.amenity import Amenity, AmenityCategory
from rentals.schemas.amenity import AmenityCreate, AmenityUpdate
from rentals.utils.exceptions import (
    APIException,
    BadRequestError,
    NotFoundError,
    DuplicateResourceError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

DEFAULT_AMENITIES = [
    ("WiFi", "wifi", AmenityCategory.BASIC, "Wireless internet access"),
    ("Kitchen", "kitchen", AmenityCategory.BASIC, "Full kitchen with cooking facilities"),
    ("Air Conditioning", "ac", AmenityCategory.BASIC, "Climate control system"),
    ("Heating", "heating", AmenityCategory.BASIC, "Heating system"),
    ("TV", "tv", AmenityCategory.BASIC, "Television with cable/streaming"),
    ("Washer", "washer", AmenityCategory.BASIC, "Washing machine"),
    ("Dryer", "dryer", AmenityCategory.BASIC, "Clothes dryer"),
    ("Iron", "iron", AmenityCategory.BASIC, "Iron and ironing board"),
    ("Hair Dryer", "hair-dryer", AmenityCategory.BASIC, "Hair dryer provided"),
    ("Smoke Detector", "smoke-detector", AmenityCategory.SAFETY, "Smoke alarm system"),
    ("Carbon Monoxide Detector", "co-detector", AmenityCategory.SAFETY, "CO detection system"),
    ("Fire Extinguisher", "fire-extinguisher", AmenityCategory.SAFETY, "Fire safety equipment"),
    ("First Aid Kit", "first-aid", AmenityCategory.SAFETY, "Basic medical supplies"),
    ("Security Cameras", "security-camera", AmenityCategory.SAFETY, "Property security monitoring"),
    ("Safe", "safe", AmenityCategory.SAFETY, "Secure storage for valuables"),
    ("Pool", "pool", AmenityCategory.LUXURY, "Swimming pool access"),
    ("Hot Tub", "hot-tub", AmenityCategory.LUXURY, "Hot tub or jacuzzi"),
    ("Gym", "gym", AmenityCategory.LUXURY, "Fitness equipment access"),
    ("Balcony", "balcony", AmenityCategory.LUXURY, "Private balcony or terrace"),
    ("Fireplace", "fireplace", AmenityCategory.LUXURY, "Indoor fireplace"),
    ("BBQ Grill", "bbq", AmenityCategory.OUTDOOR, "Outdoor grilling facilities"),
    ("Garden", "garden", AmenityCategory.OUTDOOR, "Private garden access"),
    ("Patio", "patio", AmenityCategory.OUTDOOR, "Outdoor seating area"),
    ("Beach Access", "beach", AmenityCategory.OUTDOOR, "Direct beach access"),
    ("Parking", "parking", AmenityCategory.OUTDOOR, "Parking space available"),
    ("Crib", "crib", AmenityCategory.FAMILY, "Baby crib available"),
    ("High Chair", "high-chair", AmenityCategory.FAMILY, "Child high chair"),
    ("Board Games", "games", AmenityCategory.FAMILY, "Board games and entertainment"),
]


class AmenityService:
    """Amenity catalogue management. Mutations are admin-only at the router level."""
    
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.amenity_repo = AmenityRepository(db_session)
    
    async def list_amenities(
        self,
        category: Optional[AmenityCategory] = None,
        include_inactive: bool = False
    ) -> List[Amenity]:
        return await self.amenity_repo.list_amenities(category=category, include_inactive=include_inactive)
    
    @staticmethod
    def group_by_category(amenities: List[Amenity]) -> Dict[str, List[Dict[str, Any]]]:
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for amenity in amenities:
            grouped.setdefault(amenity.category.value, []).append(amenity.to_dict())
        return grouped
    
    async def get_amenity(self, amenity_id: uuid.UUID) -> Amenity:
        amenity = await self.amenity_repo.get_by_id(amenity_id)
        if not amenity:
            raise NotFoundError("Amenity", str(amenity_id))
        return amenity
    
    async def create_amenity(self, amenity_data: AmenityCreate) -> Amenity:
        """
        Add an amenity to the catalogue.
        
        Raises:
            DuplicateResourceError: If an amenity with the same name exists
        """
        try:
            if await self.amenity_repo.get_by_name(amenity_data.name):
                raise DuplicateResourceError("Amenity", amenity_data.name)
            amenity = await self.amenity_repo.create(amenity_data.model_dump())
            logger.info(f"Amenity created: {amenity.name} (ID: {amenity.id})")
            return amenity
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create amenity: {e}")
            raise BadRequestError(f"Failed to create amenity: {str(e)}")
    
    async def update_amenity(self, amenity_id: uuid.UUID, amenity_data: AmenityUpdate) -> Amenity:
        amenity = await self.get_amenity(amenity_id)
        changes = amenity_data.model_dump(exclude_unset=True)
        
        new_name = changes.get("name")
        if new_name:
            new_name = new_name.strip()
            existing = await self.amenity_repo.get_by_name(new_name)
            if existing and existing.id != amenity.id:
                raise DuplicateResourceError("Amenity", new_name)
            changes["name"] = new_name
        
        changes = {key: value for key, value in changes.items() if value is not None or key in ("icon", "description")}
        if changes:
            amenity = await self.amenity_repo.save(amenity, changes)
            logger.info(f"Amenity updated: {amenity_id}")
        return amenity
    
    async def delete_amenity(self, amenity_id: uuid.UUID) -> None:
        """
        Delete an unused amenity.
        
        Raises:
            BadRequestError: While the amenity is assigned to properties
        """
        amenity = await self.get_amenity(amenity_id)
        in_use = await self.amenity_repo.usage_count(amenity_id)
        if in_use:
            logger.warning(f"Refused to delete amenity {amenity_id} used by {in_use} properties")
            raise BadRequestError(
                f"Amenity '{amenity.name}' is used by {in_use} properties; deactivate it instead"
            )
        await self.amenity_repo.delete(amenity_id)
        logger.info(f"Amenity deleted: {amenity.name} (ID: {amenity_id})")
    
    async def usage_stats(self) -> List[Dict[str, Any]]:
        return await self.amenity_repo.usage_stats()


async def seed_default_amenities(db_session: AsyncSession) -> int:
    """
    Insert the standard amenity catalogue, skipping names that already exist.
    
    Returns:
        Number of amenities inserted
    """
    repo = AmenityRepository(db_session)
    inserted = 0
    for name, icon, category, description in DEFAULT_AMENITIES:
        if await repo.get_by_name(name):
            continue
        await repo.create({"name": name, "icon": icon, "category": category, "description": description})
        inserted += 1
    if inserted:
        logger.info(f"Seeded {inserted} default amenities")
    return inserted
