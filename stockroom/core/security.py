"""
==============================================================================
Security Module - Authentication & Cryptography
==============================================================================

JWT token management and password hashing.

This module implements:
- SecurityManager: single instance for all security operations
- JWT access/refresh token generation and verification
- Password hashing using bcrypt

Token Structure:
---------------
{
    "sub": "user-uuid",           # Subject (user ID)
    "email": "jane@shop.test",    # Login for convenience
    "role": "staff",              # User role
    "type": "access|refresh",     # Token type
    "exp": 1234567890,            # Expiration timestamp
    "iat": 1234567890             # Issued at timestamp
}

==============================================================================
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from stockroom.config import get_settings


# Module logger
logger = logging.getLogger(__name__)


class SecurityManager:
    """
    Centralized security manager for authentication operations.

    Attributes:
        _pwd_context: Passlib context for password hashing
        _settings: Application settings reference

    Example:
        >>> security = SecurityManager()
        >>> hashed = security.hash_password("secret123")
        >>> security.verify_password("secret123", hashed)
        True
        >>> token = security.create_access_token({"sub": "user-id"})
        >>> security.verify_token(token, "access")["sub"]
        'user-id'
    """

    TOKEN_TYPE_ACCESS = "access"
    TOKEN_TYPE_REFRESH = "refresh"

    def __init__(self) -> None:
        self._pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
        self._settings = get_settings()

        logger.debug("SecurityManager initialized")

    # =========================================================================
    # PASSWORD HASHING METHODS
    # =========================================================================

    def hash_password(self, plain_password: str) -> str:
        """
        Hash a plain text password using bcrypt.

        Raises:
            ValueError: If the password is empty
        """
        if not plain_password:
            raise ValueError("Password cannot be empty")

        return self._pwd_context.hash(plain_password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a plain text password against a bcrypt hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return self._pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification error: {type(e).__name__}")
            return False

    # =========================================================================
    # JWT TOKEN CREATION METHODS
    # =========================================================================

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a short-lived JWT access token for the Authorization header."""
        return self._create_token(
            data=data,
            token_type=self.TOKEN_TYPE_ACCESS,
            expires_delta=expires_delta or timedelta(
                minutes=self._settings.access_token_expire_minutes
            )
        )

    def create_refresh_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a long-lived JWT refresh token."""
        return self._create_token(
            data=data,
            token_type=self.TOKEN_TYPE_REFRESH,
            expires_delta=expires_delta or timedelta(
                days=self._settings.refresh_token_expire_days
            )
        )

    def _create_token(
        self,
        data: Dict[str, Any],
        token_type: str,
        expires_delta: timedelta
    ) -> str:
        payload = data.copy()

        now = datetime.now(timezone.utc)
        expire = now + expires_delta

        payload.update({
            "type": token_type,
            "exp": expire,
            "iat": now
        })

        encoded_token = jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm
        )

        logger.debug(f"Created {token_type} token, expires: {expire.isoformat()}")

        return encoded_token

    # =========================================================================
    # JWT TOKEN VERIFICATION METHODS
    # =========================================================================

    def verify_token(
        self,
        token: str,
        token_type: str = TOKEN_TYPE_ACCESS
    ) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Validates signature, expiration and token type.

        Returns:
            Decoded payload dictionary if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm]
            )

            if payload.get("type") != token_type:
                logger.warning(
                    f"Token type mismatch: expected {token_type}, "
                    f"got {payload.get('type')}"
                )
                return None

            return payload

        except jwt.ExpiredSignatureError:
            logger.debug("Token verification failed: token expired")
            return None

        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            return None

    def get_access_token_expire_seconds(self) -> int:
        """Get access token expiration time in seconds."""
        return self._settings.access_token_expire_minutes * 60


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_security_manager() -> SecurityManager:
    """Get the global SecurityManager instance."""
    return SecurityManager()
