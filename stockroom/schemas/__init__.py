"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Auth: Authentication schemas
- User: User management schemas
- Product: Catalog schemas and SKU/image helpers
- Customer: Customer and supplier schemas
- Order: Order schemas
- Stats: Dashboard summary

==============================================================================
"""

from .common import MessageResponse, PaginatedResponse
from .auth import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    RefreshRequest,
    UserInfo,
    CurrentUserInfo,
    CurrentUserResponse,
)
from .user import UserUpdate, UserResponse, UserDetail
from .product import (
    ProductCreate,
    ProductUpdate,
    ProductDetail,
    ProductResponse,
    ImportResult,
    normalize_sku,
)
from .customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerDetail,
    CustomerResponse,
    SupplierCreate,
    SupplierUpdate,
    SupplierDetail,
    SupplierResponse,
)
from .order import OrderItemIn, OrderCreate, OrderUpdate, OrderDetail, OrderResponse
from .stats import MonthlySales, StatsSummary

__all__ = [
    # Common
    "MessageResponse",
    "PaginatedResponse",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "TokenResponse",
    "RefreshRequest",
    "UserInfo",
    "CurrentUserInfo",
    "CurrentUserResponse",
    # User
    "UserUpdate",
    "UserResponse",
    "UserDetail",
    # Product
    "ProductCreate",
    "ProductUpdate",
    "ProductDetail",
    "ProductResponse",
    "ImportResult",
    "normalize_sku",
    # Customer / Supplier
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerDetail",
    "CustomerResponse",
    "SupplierCreate",
    "SupplierUpdate",
    "SupplierDetail",
    "SupplierResponse",
    # Order
    "OrderItemIn",
    "OrderCreate",
    "OrderUpdate",
    "OrderDetail",
    "OrderResponse",
    # Stats
    "MonthlySales",
    "StatsSummary",
]
