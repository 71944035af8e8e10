"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for authentication, authorization and list queries.

This module implements:
- AuthenticationManager: Class-based authentication logic
- FastAPI dependencies for route protection
- Role-based access control (admin / staff)
- List query parameters (pagination, search, sort)

Dependency Hierarchy:
--------------------
                    ┌─────────────────┐
                    │   get_db()      │
                    └────────┬────────┘
                             │
              ┌──────────────┴──────────────┐
              │                             │
     ┌────────▼────────┐          ┌─────────▼─────────┐
     │get_current_user │          │ WebSocket token   │
     └────────┬────────┘          └───────────────────┘
              │
     ┌────────▼────────┐
     │  require_admin  │
     └─────────────────┘

Usage Examples:
--------------
    # Require any authenticated user
    @router.get("/me")
    async def me(user: User = Depends(get_current_user)):
        return {"email": user.email}

    # Require admin role
    @router.delete("/users/{user_id}")
    async def delete_user(admin: User = Depends(require_admin)):
        ...

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User, UserRole
from stockroom.core.security import SecurityManager, get_security_manager
from stockroom.core import exceptions


# Module logger
logger = logging.getLogger(__name__)

# HTTP Bearer security scheme for Swagger UI
security_scheme = HTTPBearer(auto_error=False)


class AuthenticationManager:
    """
    Manages user authentication and authorization.

    Attributes:
        _security: SecurityManager instance for token operations
        _db: Database session for user queries

    Example:
        >>> auth = AuthenticationManager(security_manager, db_session)
        >>> user = auth.authenticate_from_token(token)
        >>> auth.require_role(user, UserRole.ADMIN)
    """

    def __init__(
        self,
        security: SecurityManager,
        db: Optional[Session]
    ) -> None:
        self._security = security
        self._db = db

    # =========================================================================
    # TOKEN EXTRACTION METHODS
    # =========================================================================

    def extract_token_from_header(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> str:
        """
        Extract JWT token from the HTTP Authorization header.

        Raises:
            AppException: If no credentials provided
        """
        if not credentials:
            logger.debug("No authorization credentials provided")
            raise exceptions.token_invalid()

        return credentials.credentials

    def extract_token_from_query(self, token: Optional[str]) -> str:
        """
        Extract JWT token from a query parameter (for WebSocket).

        Raises:
            AppException: If no token provided
        """
        if not token:
            logger.debug("No token in query parameter")
            raise exceptions.token_invalid()

        return token

    # =========================================================================
    # USER AUTHENTICATION METHODS
    # =========================================================================

    def authenticate_from_token(
        self,
        token: str,
        token_type: str = SecurityManager.TOKEN_TYPE_ACCESS
    ) -> User:
        """
        Authenticate a user from a JWT token.

        1. Verifies the token signature and expiration
        2. Extracts the user ID from the token payload
        3. Loads the user from the database
        4. Validates the user is active

        Raises:
            AppException: If token is invalid, expired, or user not found
        """
        payload = self._security.verify_token(token, token_type)

        if not payload:
            raise exceptions.token_expired()

        user_id = payload.get("sub")

        if not user_id:
            logger.warning("Token payload missing 'sub' claim")
            raise exceptions.token_invalid()

        user = self._db.query(User).filter(User.id == user_id).first()

        if not user:
            logger.warning(f"User not found for token: {user_id}")
            raise exceptions.user_not_found(user_id)

        if not user.is_active:
            logger.warning(f"Disabled user attempted access: {user.email}")
            raise exceptions.account_disabled()

        logger.debug(f"User authenticated: {user.email}")
        return user

    def get_current_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> User:
        """Get the authenticated user from the Authorization header."""
        token = self.extract_token_from_header(credentials)
        return self.authenticate_from_token(token)

    def get_current_user_ws(self, token: Optional[str]) -> User:
        """
        Get the authenticated user from a WebSocket query parameter.

        WebSocket connections cannot use HTTP headers, so the token
        is passed as ``?token=``.
        """
        token = self.extract_token_from_query(token)
        return self.authenticate_from_token(token)

    # =========================================================================
    # ROLE-BASED ACCESS CONTROL METHODS
    # =========================================================================

    def require_role(self, user: User, *allowed_roles: UserRole) -> User:
        """
        Verify the user has one of the allowed roles.

        Raises:
            AppException: If user doesn't have a required role
        """
        if user.role not in allowed_roles:
            logger.warning(
                f"Role check failed for {user.email}: "
                f"has {user.role.value}, needs {[r.value for r in allowed_roles]}"
            )

            if UserRole.ADMIN in allowed_roles:
                raise exceptions.admin_required()
            raise exceptions.forbidden()

        return user

    def require_admin(self, user: User) -> User:
        """Require the admin role."""
        return self.require_role(user, UserRole.ADMIN)


# =============================================================================
# FASTAPI DEPENDENCY FUNCTIONS
# =============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Raises:
        AppException: If authentication fails
    """
    auth_manager = AuthenticationManager(get_security_manager(), db)
    return auth_manager.get_current_user(credentials)




async def require_admin(
    user: User = Depends(get_current_user)
) -> User:
    """
    FastAPI dependency requiring admin role.

    Usage:
        @router.get("/users")
        async def list_users(admin: User = Depends(require_admin)):
            ...
    """
    auth_manager = AuthenticationManager(get_security_manager(), None)
    return auth_manager.require_admin(user)


# =============================================================================
# LIST QUERY DEPENDENCY
# =============================================================================

class ListParams:
    """
    List query parameters container.

    Provides consistent pagination, search and sorting across all list
    endpoints. ``sort`` is validated against a per-resource whitelist by
    the service layer.

    Attributes:
        page: Current page number (1-indexed)
        limit: Number of items per page
        search: Case-insensitive substring filter
        sort: Sort field name
        order: 'asc' or 'desc'
        offset: Calculated offset for database queries
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-indexed)"),
        limit: int = Query(10, ge=1, le=100, description="Items per page (max 100)"),
        search: Optional[str] = Query(None, max_length=100, description="Search text"),
        sort: Optional[str] = Query(None, description="Sort field"),
        order: str = Query("asc", pattern="^(asc|desc)$", description="Sort order"),
    ) -> None:
        self.page = page
        self.limit = limit
        self.search = search.strip() if search and search.strip() else None
        self.sort = sort
        self.order = order
        self.offset = (page - 1) * limit

    @property
    def descending(self) -> bool:
        return self.order == "desc"

    def __repr__(self) -> str:
        return (
            f"ListParams(page={self.page}, limit={self.limit}, "
            f"search={self.search!r}, sort={self.sort!r}, order={self.order!r})"
        )
