"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- auth: Registration, login and tokens
- users: User management (admin)
- products: Product catalog, CSV import, CSV/Excel export
- customers: Customer directory
- suppliers: Supplier directory
- orders: Customer orders
- stats: Dashboard summary

==============================================================================
"""

from . import health, auth, users, products, customers, suppliers, orders, stats

__all__ = [
    "health",
    "auth",
    "users",
    "products",
    "customers",
    "suppliers",
    "orders",
    "stats",
]
