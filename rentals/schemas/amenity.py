"""
Pydantic schemas for the amenity catalogue.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from rentals.models.amenity import AmenityCategory


class AmenityCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Hot Tub"])
    icon: Optional[str] = Field(None, max_length=50)
    category: AmenityCategory = AmenityCategory.BASIC
    description: Optional[str] = Field(None, max_length=1000)
    
    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class AmenityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    category: Optional[AmenityCategory] = None
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None


class AmenityResponse(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None
    category: AmenityCategory
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class AmenityListResponse(BaseModel):
    amenities: List[AmenityResponse]
    grouped: Dict[str, List[AmenityResponse]]


class AmenityUsage(AmenityResponse):
    property_count: int
