"""
==============================================================================
Services Package
==============================================================================

Business logic layer. Each service takes a SQLAlchemy session and raises
AppException on rule violations; routers stay thin.

==============================================================================
"""

from .auth_service import AuthService
from .user_service import UserService
from .product_service import ProductService
from .customer_service import CustomerService, SupplierService
from .order_service import OrderService
from .stats_service import StatsService
from .low_stock_service import LowStockService, LowStockTaskManager

__all__ = [
    "AuthService",
    "UserService",
    "ProductService",
    "CustomerService",
    "SupplierService",
    "OrderService",
    "StatsService",
    "LowStockService",
    "LowStockTaskManager",
]
