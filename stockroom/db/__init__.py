"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure and ORM models.

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - SQLAlchemy ORM model classes
└── init_db.py    - DatabaseInitializer for setup

==============================================================================
"""

from .database import DatabaseManager, Base, get_db
from .models import (
    User,
    Product,
    Customer,
    Supplier,
    Order,
    OrderItem,
    UserRole,
    OrderStatus,
)
from .init_db import DatabaseInitializer, init_db

__all__ = [
    "DatabaseManager",
    "Base",
    "get_db",
    "User",
    "Product",
    "Customer",
    "Supplier",
    "Order",
    "OrderItem",
    "UserRole",
    "OrderStatus",
    "DatabaseInitializer",
    "init_db",
]
