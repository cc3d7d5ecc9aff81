"""
File upload utilities for listing photos.
Validates uploads with Pillow and stores them under the upload directory with aiofiles.
"""

import io
import uuid
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
from PIL import Image, UnidentifiedImageError
import aiofiles
from fastapi import UploadFile

from rentals.config import settings
from rentals.utils.exceptions import (
    FileUploadError,
    UnsupportedFileTypeError,
    FileSizeExceededError,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidatedImage:
    """Upload that passed validation, with its bytes already read."""
    filename: str
    extension: str
    mime_type: str
    content: bytes
    width: int
    height: int
    
    @property
    def size(self) -> int:
        return len(self.content)


class FileValidator:
    """Validation rules for uploaded images."""
    
    SUPPORTED_FORMATS: Dict[str, List[str]] = {
        "image/jpeg": [".jpg", ".jpeg"],
        "image/png": [".png"],
        "image/webp": [".webp"],
    }
    
    # Pillow format names per MIME type
    PIL_FORMATS = {
        "image/jpeg": "JPEG",
        "image/png": "PNG",
        "image/webp": "WEBP",
    }
    
    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000
    
    @classmethod
    def allowed_types(cls) -> List[str]:
        return [mime for mime in settings.allowed_file_types if mime in cls.SUPPORTED_FORMATS]
    
    @classmethod
    def validate_extension(cls, filename: str, mime_type: str) -> str:
        extension = Path(filename).suffix.lower()
        if not extension:
            raise FileUploadError(f"File '{filename}' must have an extension")
        if extension not in cls.SUPPORTED_FORMATS.get(mime_type, []):
            raise FileUploadError(f"File extension '{extension}' doesn't match MIME type '{mime_type}'")
        return extension
    
    @classmethod
    def validate_mime_type(cls, mime_type: Optional[str]) -> str:
        allowed = cls.allowed_types()
        if not mime_type or mime_type not in allowed:
            raise UnsupportedFileTypeError(mime_type or "unknown", allowed)
        return mime_type
    
    @classmethod
    def validate_file_size(cls, size: int, max_size: Optional[int] = None) -> int:
        if size <= 0:
            raise FileUploadError("Uploaded file is empty")
        limit = max_size or settings.max_file_size
        if size > limit:
            raise FileSizeExceededError(size, limit)
        return size
    
    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> ValidatedImage:
        """
        Run every check on an uploaded image.
        
        Args:
            file: FastAPI UploadFile object
            
        Returns:
            ValidatedImage carrying content and dimensions
            
        Raises:
            UnsupportedFileTypeError: If the MIME type is not allowed
            FileSizeExceededError: If the file is larger than the configured limit
            FileUploadError: If the name, extension or image content is invalid
        """
        if not file.filename:
            raise FileUploadError("Filename is required")
        
        mime_type = cls.validate_mime_type(file.content_type)
        extension = cls.validate_extension(file.filename, mime_type)
        
        await file.seek(0)
        content = await file.read()
        cls.validate_file_size(len(content))
        
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                width, height = img.size
                pil_format = img.format
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise FileUploadError(f"Invalid image file '{file.filename}': {e}")
        
        if pil_format != cls.PIL_FORMATS[mime_type]:
            raise FileUploadError(f"Image content '{pil_format}' doesn't match MIME type '{mime_type}'")
        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise FileUploadError(
                f"Image dimensions {width}x{height} exceed maximum {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}"
            )
        
        return ValidatedImage(
            filename=file.filename,
            extension=extension,
            mime_type=mime_type,
            content=content,
            width=width,
            height=height,
        )


class FileStorage:
    """Stores images under <upload_dir>/properties/<property_id>/."""
    
    def __init__(self, base_dir: Optional[Path] = None, url_prefix: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")
    
    def property_directory(self, property_id: uuid.UUID) -> Path:
        return self.base_dir / "properties" / str(property_id)
    
    def relative_path(self, full_path: Path) -> str:
        return full_path.relative_to(self.base_dir).as_posix()
    
    def public_url(self, relative_path: str) -> str:
        return f"{self.url_prefix}/{relative_path}"
    
    async def save(self, property_id: uuid.UUID, image: ValidatedImage) -> Path:
        """
        Write an image to disk under a unique name.
        
        Raises:
            FileUploadError: If writing fails
        """
        target = self.property_directory(property_id) / f"{uuid.uuid4()}{image.extension}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(image.content)
        except OSError as e:
            target.unlink(missing_ok=True)
            logger.error(f"Failed to store upload {image.filename}: {e}")
            raise FileUploadError(f"Failed to save file: {str(e)}")
        return target
    
    def delete(self, relative_path: str) -> bool:
        """Remove a stored file. Returns False when it was already gone."""
        path = self.base_dir / relative_path
        if not path.exists():
            logger.warning(f"Image file already missing: {path}")
            return False
        path.unlink()
        self._remove_if_empty(path.parent)
        return True
    
    def _remove_if_empty(self, directory: Path) -> None:
        if directory.exists() and directory != self.base_dir and not any(directory.iterdir()):
            directory.rmdir()
