"""
Shared response building blocks.
"""

from pydantic import BaseModel, Field
from typing import Dict, Any
import math


class PaginatedResponse(BaseModel):
    """Pagination metadata shared by every list response."""
    
    total: int = Field(..., description="Total number of items matching the criteria", examples=[42])
    page: int = Field(..., description="Current page number", examples=[1])
    page_size: int = Field(..., description="Number of items per page", examples=[12])
    total_pages: int = Field(..., description="Total number of pages", examples=[4])
    has_next: bool = Field(..., description="Whether there are more pages")
    has_previous: bool = Field(..., description="Whether there are previous pages")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    
    message: str


def pagination_meta(total: int, page: int, page_size: int) -> Dict[str, Any]:
    """Build pagination fields for a page of results."""
    total_pages = math.ceil(total / page_size) if page_size else 0
    return {
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }
