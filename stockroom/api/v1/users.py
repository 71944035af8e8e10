"""
==============================================================================
User Management Endpoints
==============================================================================

Admin-only endpoints for user management.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import ListParams, require_admin
from stockroom.services.user_service import UserService
from stockroom.schemas.user import UserUpdate, UserResponse, UserDetail
from stockroom.schemas.common import MessageResponse, PaginatedResponse


router = APIRouter(prefix="/users", tags=["Users"])


class UserController:
    """Controller for user management operations."""

    def __init__(self, db: Session):
        self._service = UserService(db)

    def list_all(self, params: ListParams) -> PaginatedResponse[UserDetail]:
        users, total = self._service.list_users(params)
        return PaginatedResponse[UserDetail].create(
            items=[UserDetail.model_validate(u) for u in users],
            total=total,
            page=params.page,
            limit=params.limit,
        )

    def get(self, user_id: str) -> UserResponse:
        return UserResponse(user=UserDetail.model_validate(self._service.get_by_id(user_id)))

    def update(self, user_id: str, data: UserUpdate) -> UserResponse:
        user = self._service.update_user(user_id, data)
        return UserResponse(user=UserDetail.model_validate(user))

    def delete(self, user_id: str, admin: User) -> MessageResponse:
        self._service.delete_user(user_id, admin)
        return MessageResponse(message="User deleted")


@router.get("", response_model=PaginatedResponse[UserDetail])
async def list_users(
    params: ListParams = Depends(),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List users (admin only). Searchable by name and email."""
    return UserController(db).list_all(params)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get user by ID (admin only)."""
    return UserController(db).get(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update name, role, status or password (admin only)."""
    return UserController(db).update(user_id, data)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Permanently delete a user (admin only)."""
    return UserController(db).delete(user_id, admin)
