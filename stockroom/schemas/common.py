"""
==============================================================================
Common Schemas Module
==============================================================================

Shared response schemas used across all API endpoints.

==============================================================================
"""

from typing import Generic, List, TypeVar
from pydantic import BaseModel, Field


T = TypeVar("T")


class MessageResponse(BaseModel):
    """Simple message response."""
    success: bool = Field(default=True)
    message: str


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list response."""
    success: bool = Field(default=True)
    items: List[T]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1, le=100)
    pages: int = Field(ge=0)

    @classmethod
    def create(cls, items: List[T], total: int, page: int = 1, limit: int = 10):
        """Factory method to create paginated response."""
        pages = (total + limit - 1) // limit if total > 0 else 0
        return cls(items=items, total=total, page=page, limit=limit, pages=pages)
