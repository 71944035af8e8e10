"""
==============================================================================
User Service Module
==============================================================================

User management service for admin operations.

Access Control:
--------------
All operations in this service require admin privileges.
The API layer enforces this through the require_admin dependency.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from stockroom.db.models import User
from stockroom.core.security import SecurityManager, get_security_manager
from stockroom.core.dependencies import ListParams
from stockroom.core import exceptions
from stockroom.schemas.user import UserUpdate
from stockroom.services.listing import paginate


# Module logger
logger = logging.getLogger(__name__)


class UserService:
    """
    User management service for admin operations.

    Example:
        >>> user_service = UserService(db_session)
        >>> users, total = user_service.list_users(params)
        >>> user = user_service.update_user(user.id, UserUpdate(is_active=False))
    """

    SORT_COLUMNS = {
        "name": User.name,
        "email": User.email,
        "role": User.role,
        "created_at": User.created_at,
    }

    def __init__(
        self,
        db: Session,
        security: Optional[SecurityManager] = None
    ) -> None:
        self._db = db
        self._security = security or get_security_manager()

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            AppException: USER_NOT_FOUND if user doesn't exist
        """
        user = self._db.query(User).filter(User.id == user_id).first()

        if not user:
            logger.warning(f"User not found: {user_id}")
            raise exceptions.user_not_found(user_id)

        return user

    def list_users(self, params: ListParams) -> Tuple[List[User], int]:
        """List users, searchable by name and email."""
        return paginate(
            self._db.query(User),
            params,
            search_columns=(User.name, User.email),
            sort_columns=self.SORT_COLUMNS,
        )

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    def update_user(self, user_id: str, data: UserUpdate) -> User:
        """
        Update user attributes. Only provided fields are updated.

        Raises:
            AppException: USER_NOT_FOUND if user doesn't exist
        """
        user = self.get_by_id(user_id)

        if data.name is not None:
            user.name = data.name

        if data.password is not None:
            user.password_hash = self._security.hash_password(data.password)
            logger.info(f"Password updated for: {user.email}")

        if data.role is not None and data.role != user.role:
            old_role = user.role
            user.role = data.role
            logger.info(f"Role changed for {user.email}: {old_role.value} → {data.role.value}")

        if data.is_active is not None:
            user.is_active = data.is_active
            status = "activated" if data.is_active else "deactivated"
            logger.info(f"User {user.email} {status}")

        self._db.commit()
        self._db.refresh(user)

        return user

    # =========================================================================
    # DELETE OPERATIONS
    # =========================================================================

    def delete_user(self, user_id: str, acting_user: User) -> None:
        """
        Permanently delete a user.

        Admins cannot delete their own account.

        Raises:
            AppException: USER_NOT_FOUND or FORBIDDEN
        """
        user = self.get_by_id(user_id)

        if user.id == acting_user.id:
            raise exceptions.forbidden("You cannot delete your own account")

        email = user.email
        self._db.delete(user)
        self._db.commit()

        logger.warning(f"⚠️ User permanently deleted: {email}")
