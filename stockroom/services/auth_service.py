"""
==============================================================================
Authentication Service Module
==============================================================================

Authentication service for registration, login and token management.

This module implements:
- AuthService: Class handling all authentication operations
- Self-service registration (staff role)
- Login with email and password
- Token generation (access and refresh) and refresh workflow

Authentication Flow:
-------------------
    ┌─────────────┐
    │   Login     │
    │  Request    │
    └──────┬──────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │ Find User   │────▶│ User Not    │ → INVALID_CREDENTIALS
    └──────┬──────┘     │   Found     │
           │            └─────────────┘
    ┌──────▼──────┐     ┌─────────────┐
    │  Verify     │────▶│  Password   │ → INVALID_CREDENTIALS
    │  Password   │     │   Wrong     │
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │   Check     │────▶│  Account    │ → ACCOUNT_DISABLED
    │   Active    │     │  Disabled   │
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐
    │  Generate   │
    │   Tokens    │
    └─────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockroom.db.models import User, UserRole
from stockroom.core.security import SecurityManager, get_security_manager
from stockroom.core import exceptions
from stockroom.schemas.auth import RegisterRequest


# Module logger
logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for user registration, login and tokens.

    Attributes:
        _db: Database session for user queries
        _security: SecurityManager for crypto operations

    Example:
        >>> auth_service = AuthService(db_session)
        >>> user, access, refresh = auth_service.authenticate("jane@shop.test", "pass123")
        >>> user, new_access, new_refresh = auth_service.refresh_tokens(refresh)
    """

    def __init__(
        self,
        db: Session,
        security: Optional[SecurityManager] = None
    ) -> None:
        self._db = db
        self._security = security or get_security_manager()

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, data: RegisterRequest) -> User:
        """
        Create a staff account.

        Raises:
            AppException: EMAIL_EXISTS if the email is taken
        """
        existing = self._db.query(User).filter(User.email == data.email).first()
        if existing:
            logger.warning(f"Registration failed: email exists - {data.email}")
            raise exceptions.email_exists(data.email)

        user = User(
            name=data.name,
            email=data.email,
            password_hash=self._security.hash_password(data.password),
            role=UserRole.STAFF,
            is_active=True,
        )

        try:
            self._db.add(user)
            self._db.commit()
            self._db.refresh(user)
        except IntegrityError:
            self._db.rollback()
            raise exceptions.email_exists(data.email)

        logger.info(f"✅ User registered: {user.email}")
        return user

    # =========================================================================
    # AUTHENTICATION METHODS
    # =========================================================================

    def authenticate(
        self,
        email: str,
        password: str
    ) -> Tuple[User, str, str]:
        """
        Authenticate a user with email and password.

        Returns:
            Tuple of (User, access_token, refresh_token)

        Raises:
            AppException: INVALID_CREDENTIALS if user not found or password wrong
            AppException: ACCOUNT_DISABLED if user is inactive
        """
        normalized_email = email.lower().strip()

        user = self._db.query(User).filter(User.email == normalized_email).first()

        if not user:
            logger.warning(f"Login failed: user not found - {normalized_email}")
            raise exceptions.invalid_credentials()

        if not self._security.verify_password(password, user.password_hash):
            logger.warning(f"Login failed: invalid password - {normalized_email}")
            raise exceptions.invalid_credentials()

        if not user.is_active:
            logger.warning(f"Login failed: account disabled - {normalized_email}")
            raise exceptions.account_disabled()

        access_token, refresh_token = self._generate_tokens(user)

        logger.info(f"✅ User authenticated: {user.email}")

        return user, access_token, refresh_token

    def refresh_tokens(self, refresh_token: str) -> Tuple[User, str, str]:
        """
        Issue a new token pair from a valid refresh token.

        Raises:
            AppException: TOKEN_EXPIRED, TOKEN_INVALID, USER_NOT_FOUND
                or ACCOUNT_DISABLED
        """
        payload = self._security.verify_token(
            refresh_token, SecurityManager.TOKEN_TYPE_REFRESH
        )

        if not payload:
            logger.warning("Token refresh failed: invalid or expired token")
            raise exceptions.token_expired()

        user_id = payload.get("sub")

        if not user_id:
            logger.warning("Token refresh failed: missing 'sub' claim")
            raise exceptions.token_invalid()

        user = self._db.query(User).filter(User.id == user_id).first()

        if not user:
            logger.warning(f"Token refresh failed: user not found - {user_id}")
            raise exceptions.user_not_found(user_id)

        if not user.is_active:
            logger.warning(f"Token refresh failed: account disabled - {user.email}")
            raise exceptions.account_disabled()

        access_token, new_refresh_token = self._generate_tokens(user)

        logger.info(f"✅ Tokens refreshed for: {user.email}")

        return user, access_token, new_refresh_token

    # =========================================================================
    # TOKEN GENERATION
    # =========================================================================

    def _generate_tokens(self, user: User) -> Tuple[str, str]:
        token_data = {
            "sub": user.id,
            "email": user.email,
            "role": user.role.value,
        }

        access_token = self._security.create_access_token(token_data)
        refresh_token = self._security.create_refresh_token({"sub": user.id})

        return access_token, refresh_token

    def get_token_expiry_seconds(self) -> int:
        """Access token lifetime in seconds, for ``expires_in``."""
        return self._security.get_access_token_expire_seconds()
