"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

Modules:
--------
- exceptions: AppException class and error factory functions
- security: SecurityManager for auth operations
- dependencies: FastAPI dependency injection functions

Usage:
------
    from stockroom.core import AppException, get_current_user, require_admin

    # Or use exception factory functions via module
    from stockroom.core import exceptions
    raise exceptions.camera_unavailable()

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)
from .security import SecurityManager, get_security_manager
from .dependencies import (
    AuthenticationManager,
    ListParams,
    get_current_user,
    require_admin,
)

__all__ = [
    # Exceptions
    "AppException",
    "register_exception_handlers",
    # Security
    "SecurityManager",
    "get_security_manager",
    # Dependencies
    "AuthenticationManager",
    "ListParams",
    "get_current_user",
    "require_admin",
]
