"""
==============================================================================
User Schemas Module
==============================================================================

Request and response schemas for user management.

==============================================================================
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from stockroom.db.models import UserRole


class UserUpdate(BaseModel):
    """User update request (admin)."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
    role: Optional[UserRole] = Field(default=None)
    is_active: Optional[bool] = Field(default=None)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class UserDetail(BaseModel):
    """Detailed user information."""
    id: str
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Single user response."""
    success: bool = Field(default=True)
    user: UserDetail
