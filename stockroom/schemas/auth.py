"""
==============================================================================
Authentication Schemas Module
==============================================================================

Request and response schemas for authentication endpoints.

==============================================================================
"""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from stockroom.db.models import UserRole


def _normalize_email(v: str) -> str:
    return v.lower().strip()


class RegisterRequest(BaseModel):
    """Self-service registration; new accounts get the staff role."""
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=120)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = _normalize_email(v)
        local, _, domain = v.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return v


class LoginRequest(BaseModel):
    """Login credentials."""
    email: str = Field(..., min_length=1, max_length=120)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserInfo(BaseModel):
    """Basic user info for token response."""
    id: str
    name: str
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Token response after authentication."""
    success: bool = Field(default=True)
    access_token: str
    refresh_token: str
    token_type: str = Field(default="bearer")
    expires_in: int
    user: UserInfo


class RefreshRequest(BaseModel):
    """Token refresh request."""
    refresh_token: str


class CurrentUserInfo(BaseModel):
    """Detailed current user information."""
    id: str
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CurrentUserResponse(BaseModel):
    """Current user details response."""
    success: bool = Field(default=True)
    user: CurrentUserInfo
