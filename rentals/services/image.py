"""
Image service for property photo galleries.
Handles validated uploads, primary image rules, reordering and file cleanup.
"""

import uuid
import logging
from pathlib import Path
from typing import List, Optional
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from rentals.config import settings
from rentals.models.image import PropertyImage
from rentals.models.user import User
from rentals.repositories.image import ImageRepository
from rentals.schemas.image import PropertyImageUpdate
from rentals.services.property import PropertyService
from rentals.utils.file_utils import FileValidator, FileStorage
from rentals.utils.exceptions import (
    APIException,
    BadRequestError,
    NotFoundError,
    FileUploadError,
)

logger = logging.getLogger(__name__)


class ImageService:
    """Service for managing property image uploads and storage."""
    
    def __init__(self, db_session: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db_session
        self.repository = ImageRepository(db_session)
        self.property_service = PropertyService(db_session)
        self.storage = storage or FileStorage()
    
    async def list_images(self, property_id: uuid.UUID, current_user: Optional[User] = None) -> List[PropertyImage]:
        await self.property_service.get_property(property_id, current_user)
        return await self.repository.get_by_property(property_id)
    
    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Upload a batch of images to a property.
        
        Every file is validated before anything is written, so a single bad
        file rejects the whole batch. The first image of a property without a
        primary becomes primary.
        
        Raises:
            PropertyNotFoundError: If the property doesn't exist
            PropertyOwnershipError: If the user is not the owner or an admin
            FileUploadError: If no files, too many files or an invalid file is sent
        """
        await self.property_service.get_manageable_property(property_id, current_user)
        
        if not files:
            raise FileUploadError("No files provided")
        if len(files) > settings.max_files_per_upload:
            raise FileUploadError(f"At most {settings.max_files_per_upload} files can be uploaded at once")
        
        validated = [await FileValidator.validate_upload_file(file) for file in files]
        
        needs_primary = not await self.repository.has_primary(property_id)
        display_order = await self.repository.next_display_order(property_id)
        created: List[PropertyImage] = []
        row_ids: List[uuid.UUID] = []
        stored: List[Path] = []
        
        try:
            for index, image in enumerate(validated):
                path = await self.storage.save(property_id, image)
                stored.append(path)
                relative = self.storage.relative_path(path)
                row_ids.append(uuid.uuid4())
                created.append(await self.repository.create({
                    "id": row_ids[-1],
                    "property_id": property_id,
                    "image_url": self.storage.public_url(relative),
                    "file_path": relative,
                    "filename": image.filename,
                    "file_size": image.size,
                    "mime_type": image.mime_type,
                    "width": image.width,
                    "height": image.height,
                    "display_order": display_order + index,
                    "is_primary": needs_primary and index == 0,
                }))
        except APIException:
            await self._discard(stored, row_ids)
            raise
        except Exception as e:
            await self._discard(stored, row_ids)
            logger.error(f"Failed to upload images for property {property_id}: {e}")
            raise BadRequestError(f"Failed to upload images: {str(e)}")
        
        logger.info(
            f"Uploaded {len(created)} images to property {property_id}",
            extra={"property_id": str(property_id), "user_id": str(current_user.id)}
        )
        return created
    
    async def update_image(
        self,
        property_id: uuid.UUID,
        image_id: uuid.UUID,
        image_data: PropertyImageUpdate,
        current_user: User
    ) -> PropertyImage:
        """Update alt text, display order or the primary flag of an image."""
        await self.property_service.get_manageable_property(property_id, current_user)
        image = await self._get_image(property_id, image_id)
        
        changes = image_data.model_dump(exclude_unset=True, exclude={"is_primary"})
        changes = {key: value for key, value in changes.items() if key == "alt_text" or value is not None}
        if changes:
            image = await self.repository.save(image, changes)
        
        if image_data.is_primary is True:
            await self.repository.set_primary(property_id, image_id)
            await self.db.refresh(image)
        elif image_data.is_primary is False and image.is_primary:
            image = await self.repository.save(image, {"is_primary": False})
        
        logger.info(f"Image {image_id} updated on property {property_id}")
        return image
    
    async def delete_image(self, property_id: uuid.UUID, image_id: uuid.UUID, current_user: User) -> None:
        """
        Delete an image row and its file.
        When the primary image goes, the next image in display order takes over.
        """
        await self.property_service.get_manageable_property(property_id, current_user)
        image = await self._get_image(property_id, image_id)
        was_primary = image.is_primary
        file_path = image.file_path
        
        await self.repository.delete(image_id)
        self.storage.delete(file_path)
        
        if was_primary:
            remaining = await self.repository.get_by_property(property_id)
            if remaining:
                await self.repository.set_primary(property_id, remaining[0].id)
                logger.info(f"Image {remaining[0].id} promoted to primary on property {property_id}")
        
        logger.info(f"Image {image_id} deleted from property {property_id}")
    
    async def reorder_images(
        self,
        property_id: uuid.UUID,
        image_ids: List[uuid.UUID],
        current_user: User
    ) -> List[PropertyImage]:
        """
        Apply a new gallery order.
        Images left out of image_ids keep their relative order after the listed ones.
        
        Raises:
            BadRequestError: If an id does not belong to the property
        """
        await self.property_service.get_manageable_property(property_id, current_user)
        images = await self.repository.get_by_property(property_id)
        by_id = {image.id: image for image in images}
        
        foreign = [str(image_id) for image_id in image_ids if image_id not in by_id]
        if foreign:
            raise BadRequestError(f"Images do not belong to this property: {', '.join(foreign)}")
        
        listed = [by_id[image_id] for image_id in image_ids]
        rest = [image for image in images if image.id not in set(image_ids)]
        ordered = await self.repository.reorder(listed + rest)
        logger.info(f"Reordered {len(ordered)} images on property {property_id}")
        return ordered
    
    async def _get_image(self, property_id: uuid.UUID, image_id: uuid.UUID) -> PropertyImage:
        image = await self.repository.get_for_property(property_id, image_id)
        if not image:
            raise NotFoundError("Image", str(image_id))
        return image
    
    async def _discard(self, paths: List[Path], image_ids: List[uuid.UUID]) -> None:
        """Undo a partly stored batch: its rows and its files."""
        for image_id in image_ids:
            await self.repository.delete(image_id)
        for path in paths:
            path.unlink(missing_ok=True)
