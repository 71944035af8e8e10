"""
==============================================================================
Database Initialization Module
==============================================================================

Database setup: table creation and default admin seeding.

Initialization Flow:
-------------------
1. Create all tables from ORM models
2. Check if the admin account exists
3. Create the default admin if not present

Security Notes:
--------------
- Default admin credentials should be changed immediately
- Credentials are loaded from environment variables

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from stockroom.config import get_settings
from stockroom.db.database import DatabaseManager
from stockroom.db.models import User, UserRole
from stockroom.core.security import get_security_manager


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        self._db_manager = db_manager or DatabaseManager()
        self._security = get_security_manager()
        self._settings = get_settings()
        self._session = session

    def create_tables(self) -> None:
        """Create all database tables (idempotent)."""
        self._db_manager.create_tables()

    def create_default_admin(self) -> bool:
        """
        Seed the admin account if it does not exist.

        Returns:
            True if a new admin was created
        """
        session = self._session or self._db_manager.get_session()
        owns_session = self._session is None

        try:
            email = self._settings.default_admin_email.lower()
            existing = session.query(User).filter(User.email == email).first()

            if existing:
                logger.debug(f"Admin account present: {email}")
                return False

            admin = User(
                name="Admin",
                email=email,
                password_hash=self._security.hash_password(
                    self._settings.default_admin_password
                ),
                role=UserRole.ADMIN,
                is_active=True,
            )
            session.add(admin)
            session.commit()

            logger.info(f"✅ Admin user seeded: {email}")
            logger.warning("⚠️ Change the default admin password immediately")
            return True

        except Exception:
            session.rollback()
            raise
        finally:
            if owns_session:
                session.close()

    def initialize(self) -> None:
        """Run full initialization."""
        self.create_tables()
        self.create_default_admin()


def init_db() -> None:
    """Create tables and seed the admin account."""
    DatabaseInitializer().initialize()
