"""
Pydantic schemas for property image responses and gallery updates.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
import uuid


class PropertyImageResponse(BaseModel):
    id: str
    property_id: str
    image_url: str
    filename: str
    file_size: int
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    alt_text: Optional[str] = None
    display_order: int
    is_primary: bool
    created_at: Optional[datetime] = None


class PropertyImageUpdate(BaseModel):
    alt_text: Optional[str] = Field(None, max_length=255)
    display_order: Optional[int] = Field(None, ge=0)
    is_primary: Optional[bool] = None


class ImageReorderRequest(BaseModel):
    """Image ids in their new display order."""
    
    image_ids: List[uuid.UUID] = Field(..., min_length=1)
    
    @field_validator("image_ids")
    @classmethod
    def unique_ids(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("image_ids must not contain duplicates")
        return v


class ImageUploadResponse(BaseModel):
    images: List[PropertyImageResponse]
    uploaded: int
