"""
Property service for managing listings with business logic validation.
Handles CRUD, ownership and visibility rules, status history, amenities and blocked dates.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from rentals.repositories.property import PropertyRepository, PropertySearchFilters
from rentals.repositories.amenity import AmenityRepository
from rentals.repositories.review import ReviewRepository
from rentals.repositories.blocked_date import BlockedDateRepository
from rentals.models.property import (
    Property, PropertyStatus, PropertyStatusHistory, HOST_SETTABLE_STATUSES, PUBLIC_STATUSES
)
from rentals.models.amenity import Amenity
from rentals.models.blocked_date import BlockedDate
from rentals.models.user import User
from rentals.schemas.property import PropertyCreate, PropertyUpdate, BlockedDateCreate
from rentals.config import settings
from rentals.utils.exceptions import (
    APIException,
    PropertyNotFoundError,
    PropertyOwnershipError,
    PropertyStatusError,
    BadRequestError,
    NotFoundError,
    ConflictError,
    InsufficientPermissionsError,
)
from datetime import date
import uuid
import logging

logger = logging.getLogger(__name__)

RECENT_REVIEWS_LIMIT = 5


class PropertyService:
    """
    Property service for rental listings.
    Hosts manage their own properties; admins may manage any.
    """
    
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.amenity_repo = AmenityRepository(db_session)
        self.review_repo = ReviewRepository(db_session)
        self.blocked_date_repo = BlockedDateRepository(db_session)
    
    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new listing owned by the current user.
        
        Args:
            property_data: Property creation data
            current_user: User creating the property
            
        Returns:
            Created property instance
            
        Raises:
            InsufficientPermissionsError: If the user is neither a host nor an admin
            BadRequestError: If unknown amenities are referenced
        """
        try:
            if not current_user.can_host:
                raise InsufficientPermissionsError("create properties")
            
            data = property_data.model_dump(exclude={"status", "amenity_ids"})
            requested = property_data.status
            data["status"] = requested if requested in HOST_SETTABLE_STATUSES else PropertyStatus.DRAFT
            data["host_id"] = current_user.id
            
            await self._validate_amenity_ids(property_data.amenity_ids)
            
            property_obj = await self.property_repo.create(data)
            if property_data.amenity_ids:
                property_obj = await self.property_repo.replace_amenities(property_obj, property_data.amenity_ids)
            
            logger.info(
                f"Property created: {property_obj.title} (ID: {property_obj.id}) by host {current_user.id}",
                extra={"property_id": str(property_obj.id), "status": property_obj.status.value}
            )
            return property_obj
        
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create property: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")
    
    async def get_property(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> Property:
        """
        Get a property honoring visibility rules.
        
        Anonymous and unrelated users see active or pending listings only; the
        owner and admins see every status.
        
        Raises:
            PropertyNotFoundError: If the property does not exist or is hidden from the caller
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        
        if property_obj.status not in PUBLIC_STATUSES:
            if not current_user or not current_user.can_manage_property(property_obj.host_id):
                raise PropertyNotFoundError(str(property_id))
        
        return property_obj
    
    async def get_property_details(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> Dict[str, Any]:
        """Property with active amenities and the most recent visible reviews."""
        property_obj = await self.get_property(property_id, current_user)
        reviews, _ = await self.review_repo.list_for_property(property_id, skip=0, limit=RECENT_REVIEWS_LIMIT)
        
        details = property_obj.to_dict()
        details["amenities"] = [amenity.to_dict() for amenity in property_obj.amenities if amenity.is_active]
        details["recent_reviews"] = [review.to_dict() for review in reviews]
        return details
    
    async def get_manageable_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        """
        Get a property the current user may modify.
        
        Raises:
            PropertyNotFoundError: If the property does not exist
            PropertyOwnershipError: If the user is not the owner or an admin
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        if not current_user.can_manage_property(property_obj.host_id):
            logger.warning(f"User {current_user.id} attempted to manage property {property_id}")
            raise PropertyOwnershipError()
        return property_obj
    
    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Update a listing.
        
        Hosts may only move their listing to draft or pending; admins may set any
        status. Every status change is recorded in the status history.
        
        Raises:
            PropertyNotFoundError: If property doesn't exist
            PropertyOwnershipError: If user doesn't own the property
            PropertyStatusError: If a host requests a status reserved for admins
        """
        try:
            property_obj = await self.get_manageable_property(property_id, current_user)
            changes = property_data.model_dump(exclude_unset=True, exclude={"amenity_ids"})
            
            new_status = changes.get("status")
            old_status = property_obj.status
            if new_status is not None:
                if not current_user.is_admin and new_status not in HOST_SETTABLE_STATUSES:
                    raise PropertyStatusError(
                        f"Hosts can only set status to draft or pending, not {new_status.value}"
                    )
            else:
                changes.pop("status", None)
            
            merged_min = changes.get("min_nights", property_obj.min_nights)
            merged_max = changes.get("max_nights", property_obj.max_nights)
            if merged_max and merged_max < merged_min:
                raise BadRequestError("max_nights cannot be lower than min_nights")
            
            if property_data.amenity_ids is not None:
                await self._validate_amenity_ids(property_data.amenity_ids)
            
            if changes:
                property_obj = await self.property_repo.save(property_obj, changes)
            
            if new_status is not None and new_status != old_status:
                await self.property_repo.add_status_history(
                    property_obj.id, old_status, new_status, current_user.id, notes="Updated via listing edit"
                )
                logger.info(f"Property {property_id} status changed {old_status.value} -> {new_status.value}")
            
            if property_data.amenity_ids is not None:
                property_obj = await self.property_repo.replace_amenities(property_obj, property_data.amenity_ids)
            
            logger.info(f"Property updated: {property_id} by user {current_user.id}")
            return property_obj
        
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")
    
    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        """
        Soft delete: the listing becomes inactive.
        
        Raises:
            BadRequestError: While pending or confirmed bookings exist
        """
        property_obj = await self.get_manageable_property(property_id, current_user)
        
        if await self.property_repo.has_open_bookings(property_id):
            logger.warning(f"Refused to delete property {property_id} with open bookings")
            raise BadRequestError("Cannot delete a property with pending or confirmed bookings")
        
        await self.change_status(property_obj, PropertyStatus.INACTIVE, current_user, notes="Deleted by owner")
        logger.info(f"Property soft-deleted: {property_id} by user {current_user.id}")
        return property_obj
    
    async def change_status(
        self,
        property_obj: Property,
        new_status: PropertyStatus,
        changed_by: User,
        notes: Optional[str] = None,
        extra_changes: Optional[Dict[str, Any]] = None
    ) -> Property:
        """Set a listing's status and record the transition."""
        old_status = property_obj.status
        changes = {"status": new_status, **(extra_changes or {})}
        property_obj = await self.property_repo.save(property_obj, changes)
        if old_status != new_status:
            await self.property_repo.add_status_history(property_obj.id, old_status, new_status, changed_by.id, notes)
        return property_obj
    
    async def search_properties(
        self,
        filters: PropertySearchFilters,
        page: int = 1,
        page_size: int = 12,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Tuple[List[Property], int]:
        """Public search over active listings."""
        if filters.min_price is not None and filters.max_price is not None and filters.min_price > filters.max_price:
            raise BadRequestError("min_price cannot be greater than max_price")
        if (filters.check_in is None) != (filters.check_out is None):
            raise BadRequestError("check_in and check_out must be provided together")
        if filters.check_in and filters.check_out and filters.check_in >= filters.check_out:
            raise BadRequestError("check_out must be after check_in")
        
        page_size = min(page_size, settings.max_page_size)
        return await self.property_repo.search_properties(
            filters, skip=(page - 1) * page_size, limit=page_size, sort_by=sort_by, sort_order=sort_order
        )
    
    async def get_host_properties(
        self,
        host_id: uuid.UUID,
        status: Optional[PropertyStatus] = None,
        page: int = 1,
        page_size: int = 12
    ) -> Tuple[List[Property], int]:
        page_size = min(page_size, settings.max_page_size)
        return await self.property_repo.get_host_properties(
            host_id, status=status, skip=(page - 1) * page_size, limit=page_size
        )
    
    async def get_amenities(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> List[Amenity]:
        property_obj = await self.get_property(property_id, current_user)
        return list(property_obj.amenities)
    
    async def set_amenities(self, property_id: uuid.UUID, amenity_ids: List[uuid.UUID], current_user: User) -> List[Amenity]:
        property_obj = await self.get_manageable_property(property_id, current_user)
        await self._validate_amenity_ids(amenity_ids)
        property_obj = await self.property_repo.replace_amenities(property_obj, amenity_ids)
        logger.info(f"Amenities replaced for property {property_id}: {len(amenity_ids)} assigned")
        return list(property_obj.amenities)
    
    async def get_status_history(self, property_id: uuid.UUID) -> List[PropertyStatusHistory]:
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))
        return await self.property_repo.get_status_history(property_id)
    
    async def get_blocked_dates(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> List[BlockedDate]:
        await self.get_property(property_id, current_user)
        return await self.blocked_date_repo.in_range(property_id)
    
    async def block_dates(self, property_id: uuid.UUID, data: BlockedDateCreate, current_user: User) -> List[BlockedDate]:
        """
        Block calendar days on a property.
        
        Raises:
            ConflictError: If any of the days is already blocked
        """
        await self.get_manageable_property(property_id, current_user)
        
        for day in sorted(set(data.dates)):
            if await self.blocked_date_repo.get_for_date(property_id, day):
                raise ConflictError(f"Date {day.isoformat()} is already blocked")
        
        created = []
        try:
            for day in sorted(set(data.dates)):
                created.append(await self.blocked_date_repo.create({
                    "property_id": property_id,
                    "blocked_date": day,
                    "reason": data.reason,
                    "notes": data.notes,
                }))
        except IntegrityError:
            raise ConflictError("One of the dates is already blocked")
        
        logger.info(f"Blocked {len(created)} dates on property {property_id}")
        return created
    
    async def unblock_date(self, property_id: uuid.UUID, day: date, current_user: User) -> None:
        await self.get_manageable_property(property_id, current_user)
        blocked = await self.blocked_date_repo.get_for_date(property_id, day)
        if not blocked:
            raise NotFoundError("Blocked date", day.isoformat())
        await self.blocked_date_repo.delete(blocked.id)
        logger.info(f"Unblocked {day.isoformat()} on property {property_id}")
    
    async def _validate_amenity_ids(self, amenity_ids: List[uuid.UUID]) -> None:
        if not amenity_ids:
            return
        found = {amenity.id for amenity in await self.amenity_repo.get_many(amenity_ids)}
        missing = set(amenity_ids) - found
        if missing:
            raise BadRequestError(f"Unknown amenity ids: {', '.join(sorted(str(m) for m in missing))}")
