"""
==============================================================================
Product Schemas Module
==============================================================================

Request and response schemas for the product catalog.

SKU Normalisation:
-----------------
SKUs are trimmed and upper-cased on the way in, so a code read from a
barcode and a code typed into a form resolve to the same product.

Images:
------
Images travel as base64 data URLs (``data:image/png;base64,...``) and
are stored as raw bytes plus a content type.

==============================================================================
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator


MAX_IMAGE_BYTES = 2 * 1024 * 1024


def normalize_sku(value: str) -> str:
    """Trim and upper-case a SKU."""
    return value.strip().upper()


def parse_data_url(value: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into (content_type, bytes).

    Raises:
        ValueError: If the value is not a base64 image data URL
    """
    header, sep, payload = value.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Image must be a base64 data URL")

    content_type = header[len("data:"):-len(";base64")]
    if not content_type.startswith("image/"):
        raise ValueError("Only image uploads are allowed")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("Image payload is not valid base64")

    if len(data) > MAX_IMAGE_BYTES:
        raise ValueError("Image is larger than 2 MB")

    return content_type, data


def to_data_url(content_type: Optional[str], data: Optional[bytes]) -> Optional[str]:
    if not data:
        return None
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type or 'application/octet-stream'};base64,{encoded}"


class ProductCreate(BaseModel):
    """Product creation request."""
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=0)
    category: str = Field(..., min_length=1, max_length=100)
    image: Optional[str] = Field(default=None, description="base64 data URL")

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v: str) -> str:
        v = normalize_sku(v)
        if not v:
            raise ValueError("SKU cannot be blank")
        return v

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: Optional[str]) -> Optional[str]:
        if v:
            parse_data_url(v)
        return v or None


class ProductUpdate(BaseModel):
    """Product update request. Only provided fields change."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sku: Optional[str] = Field(default=None, min_length=1, max_length=64)
    quantity: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    image: Optional[str] = Field(default=None, description="base64 data URL")

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = normalize_sku(v)
        if not v:
            raise ValueError("SKU cannot be blank")
        return v

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: Optional[str]) -> Optional[str]:
        if v:
            parse_data_url(v)
        return v


class ProductDetail(BaseModel):
    """Product as returned by the API and the scan workflow."""
    id: str
    name: str
    sku: str
    quantity: int
    category: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, product) -> "ProductDetail":
        return cls(
            id=product.id,
            name=product.name,
            sku=product.sku,
            quantity=product.quantity,
            category=product.category,
            image=to_data_url(product.image_content_type, product.image_data),
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductResponse(BaseModel):
    """Single product response."""
    success: bool = Field(default=True)
    product: ProductDetail


class ImportResult(BaseModel):
    """Outcome of a CSV import."""
    success: bool = Field(default=True)
    imported: int = Field(ge=0)
    skipped_existing: int = Field(ge=0)
    skipped_invalid: int = Field(ge=0)
