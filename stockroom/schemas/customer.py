"""
==============================================================================
Customer & Supplier Schemas Module
==============================================================================

Request and response schemas for customer and supplier contacts.

==============================================================================
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Field cannot be blank")
    return v


class ContactCreate(BaseModel):
    """Name, email and phone are all required."""
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=120)
    phone: str = Field(..., min_length=3, max_length=32)

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _strip_required(v).lower()


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, min_length=3, max_length=120)
    phone: Optional[str] = Field(default=None, min_length=3, max_length=32)

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v).lower() if v is not None else v


class CustomerCreate(ContactCreate):
    """Customer creation request."""


class CustomerUpdate(ContactUpdate):
    """Customer update request."""


class CustomerDetail(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerResponse(BaseModel):
    success: bool = Field(default=True)
    customer: CustomerDetail


class SupplierCreate(ContactCreate):
    """Supplier creation request."""
    address: Optional[str] = Field(default=None, max_length=255)


class SupplierUpdate(ContactUpdate):
    """Supplier update request."""
    address: Optional[str] = Field(default=None, max_length=255)


class SupplierDetail(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    address: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SupplierResponse(BaseModel):
    success: bool = Field(default=True)
    supplier: SupplierDetail
