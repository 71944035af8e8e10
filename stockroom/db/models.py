"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the inventory system.

Database Schema:
---------------

    ┌──────────────────────┐        ┌──────────────────────┐
    │        users         │        │      suppliers       │
    ├──────────────────────┤        ├──────────────────────┤
    │ id (UUID, PK)        │        │ id (UUID, PK)        │
    │ name                 │        │ name, email, phone   │
    │ email (UNIQUE)       │        │ address (NULLABLE)   │
    │ password_hash        │        │ created_at           │
    │ role (admin|staff)   │        └──────────────────────┘
    │ is_active            │
    └──────────────────────┘

    ┌──────────────────────┐        ┌──────────────────────┐
    │      customers       │        │       products       │
    ├──────────────────────┤        ├──────────────────────┤
    │ id (UUID, PK)        │        │ id (UUID, PK)        │
    │ name                 │        │ name                 │
    │ email (UNIQUE)       │        │ sku (UNIQUE, UPPER)  │
    │ phone (UNIQUE)       │        │ quantity (>= 0)      │
    └──────────┬───────────┘        │ category             │
               │ 1:N                │ image_data / type    │
    ┌──────────▼───────────┐        └──────────▲───────────┘
    │        orders        │                   │
    ├──────────────────────┤                   │
    │ id (UUID, PK)        │        ┌──────────┴───────────┐
    │ customer_id (FK)     │  1:N   │     order_items      │
    │ status               │───────▶├──────────────────────┤
    │ total (>= 0)         │        │ id, order_id (FK)    │
    └──────────────────────┘        │ product_id (FK)      │
                                    │ quantity (>= 1)      │
                                    └──────────────────────┘

=============================================================================
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import List

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import Mapped, relationship

from stockroom.db.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, enum.Enum):
    """
    User role enumeration.

    - ADMIN: Full access including user management
    - STAFF: Inventory screens and scanning
    """

    ADMIN = "admin"
    STAFF = "staff"

    def __str__(self) -> str:
        return self.value


class OrderStatus(str, enum.Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# USER MODEL
# =============================================================================

class User(Base):
    """
    User account model.

    Attributes:
        id: Unique identifier (UUID)
        name: Display name
        email: Unique login (lowercase)
        password_hash: Bcrypt hashed password
        role: admin or staff
        is_active: Account status
    """

    __tablename__ = "users"

    id: str = Column(String(36), primary_key=True, default=_uuid)

    name: str = Column(String(100), nullable=False)

    email: str = Column(
        String(120),
        unique=True,
        nullable=False,
        index=True,
        doc="Unique login (lowercase)"
    )

    password_hash: str = Column(String(255), nullable=False)

    role: UserRole = Column(
        Enum(UserRole),
        default=UserRole.STAFF,
        nullable=False,
    )

    is_active: bool = Column(Boolean, default=True, nullable=False)

    created_at: datetime = Column(DateTime, default=func.now(), nullable=False)

    updated_at: datetime = Column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return (
            f"User(id={self.id!r}, "
            f"email={self.email!r}, "
            f"role={self.role.value!r}, "
            f"is_active={self.is_active})"
        )


# =============================================================================
# CATALOG MODEL
# =============================================================================

class Product(Base):
    """
    Catalog product.

    The SKU is the code printed on the product barcode. It is stored
    trimmed and upper-cased so scanner lookups are exact matches.
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
    )

    id: str = Column(String(36), primary_key=True, default=_uuid)

    name: str = Column(String(255), nullable=False)

    sku: str = Column(String(64), unique=True, nullable=False, index=True)

    quantity: int = Column(Integer, nullable=False, default=0)

    category: str = Column(String(100), nullable=True, index=True)

    image_data: bytes = Column(LargeBinary, nullable=True)

    image_content_type: str = Column(String(64), nullable=True)

    created_at: datetime = Column(DateTime, default=func.now(), nullable=False)

    updated_at: datetime = Column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"Product(sku={self.sku!r}, name={self.name!r}, quantity={self.quantity})"


# =============================================================================
# PARTY MODELS
# =============================================================================

class Customer(Base):
    """Customer placing orders; email and phone are unique."""

    __tablename__ = "customers"

    id: str = Column(String(36), primary_key=True, default=_uuid)
    name: str = Column(String(100), nullable=False)
    email: str = Column(String(120), unique=True, nullable=False, index=True)
    phone: str = Column(String(32), unique=True, nullable=False, index=True)
    created_at: datetime = Column(DateTime, default=func.now(), nullable=False)
    updated_at: datetime = Column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    orders: Mapped[List["Order"]] = relationship(
        "Order",
        back_populates="customer",
    )


class Supplier(Base):
    """Supplier contact."""

    __tablename__ = "suppliers"

    id: str = Column(String(36), primary_key=True, default=_uuid)
    name: str = Column(String(100), nullable=False)
    email: str = Column(String(120), nullable=False)
    phone: str = Column(String(32), nullable=False)
    address: str = Column(String(255), nullable=True)
    created_at: datetime = Column(DateTime, default=func.now(), nullable=False)
    updated_at: datetime = Column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# =============================================================================
# ORDER MODELS
# =============================================================================

class Order(Base):
    """
    Customer order.

    Items are deleted together with the order.
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_orders_total_non_negative"),
    )

    id: str = Column(String(36), primary_key=True, default=_uuid)

    customer_id: str = Column(
        String(36),
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    status: OrderStatus = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
    )

    total: float = Column(Float, nullable=False, default=0.0)

    created_at: datetime = Column(DateTime, default=func.now(), nullable=False, index=True)

    updated_at: datetime = Column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    customer: Mapped["Customer"] = relationship("Customer", back_populates="orders")

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
    )


class OrderItem(Base):
    """Line of an order."""

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
    )

    id: int = Column(Integer, primary_key=True, autoincrement=True)

    order_id: str = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_id: str = Column(
        String(36),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )

    quantity: int = Column(Integer, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    product: Mapped["Product"] = relationship("Product")
