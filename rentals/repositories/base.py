"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select, delete, func
from rentals.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Every write commits and refreshes so callers always hold current rows.
    """
    
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.
        
        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db
    
    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.
        
        Args:
            obj_in: Dictionary of field values for the new record
            
        Returns:
            Created model instance
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise
    
    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its ID.
        
        Args:
            id: UUID of the record to retrieve
            
        Returns:
            Model instance if found, None otherwise
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        obj = result.scalar_one_or_none()
        
        if obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found")
        
        return obj
    
    async def get_multi(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> List[ModelType]:
        """
        Get multiple records with optional filtering, pagination, and ordering.
        
        Args:
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return
            filters: Dictionary of field filters
            order_by: Field name to order by (prefix with '-' for descending)
            
        Returns:
            List of model instances
        """
        query = self._apply_filters(select(self.model), filters)
        
        if order_by:
            field_name = order_by.lstrip("-")
            if hasattr(self.model, field_name):
                column = getattr(self.model, field_name)
                query = query.order_by(column.desc() if order_by.startswith("-") else column)
        else:
            query = query.order_by(self.model.created_at.desc())
        
        result = await self.db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())
    
    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update a record by its ID, ignoring None values.
        
        Args:
            id: UUID of the record to update
            obj_in: Dictionary of field values to update
            
        Returns:
            Updated model instance if found, None otherwise
        """
        db_obj = await self.get_by_id(id)
        if db_obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found for update")
            return None
        
        update_data = {k: v for k, v in obj_in.items() if v is not None}
        if not update_data:
            logger.warning(f"No valid data provided for updating {self.model.__name__} {id}")
            return db_obj
        
        return await self.save(db_obj, update_data)
    
    async def save(self, db_obj: ModelType, changes: Optional[Dict[str, Any]] = None) -> ModelType:
        """
        Apply changes (None values included) to a loaded instance and commit.
        
        Args:
            db_obj: Instance already attached to the session
            changes: Attribute values to set before committing
            
        Returns:
            The refreshed instance
        """
        try:
            for field, value in (changes or {}).items():
                setattr(db_obj, field, value)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Saved {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to save {self.model.__name__} {db_obj.id}: {e}")
            raise
    
    async def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record by its ID.
        
        Returns:
            True if record was deleted, False if not found
        """
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
            await self.db.commit()
            
            deleted = result.rowcount > 0
            if deleted:
                logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise
    
    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records with optional filtering."""
        query = self._apply_filters(select(func.count(self.model.id)), filters)
        result = await self.db.execute(query)
        return result.scalar() or 0
    
    async def exists(self, id: uuid.UUID) -> bool:
        return await self.count({"id": id}) > 0
    
    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """
        Get a record by a specific field value.
        
        Raises:
            ValueError: If the model has no such field
        """
        if not hasattr(self.model, field):
            raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")
        
        result = await self.db.execute(select(self.model).where(getattr(self.model, field) == value))
        return result.scalar_one_or_none()
    
    async def paginate(self, query: Select, skip: int, limit: int) -> Tuple[List[Any], int]:
        """
        Execute a select with offset pagination.
        
        Args:
            query: Select statement, already filtered and ordered
            skip: Number of rows to skip
            limit: Maximum number of rows to return
            
        Returns:
            Tuple of (rows, total count before pagination)
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total = (await self.db.execute(count_query)).scalar() or 0
        
        result = await self.db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all()), total
    
    def _apply_filters(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        for field, value in (filters or {}).items():
            if not hasattr(self.model, field):
                continue
            column = getattr(self.model, field)
            if isinstance(value, (list, tuple)):
                query = query.where(column.in_(value))
            else:
                query = query.where(column == value)
        return query
