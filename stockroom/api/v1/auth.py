"""
==============================================================================
Authentication Endpoints
==============================================================================

Registration, login, token refresh and current user.

==============================================================================
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stockroom.db.database import get_db
from stockroom.db.models import User
from stockroom.core.dependencies import get_current_user
from stockroom.services.auth_service import AuthService
from stockroom.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    RefreshRequest,
    UserInfo,
    CurrentUserResponse,
    CurrentUserInfo,
)
from stockroom.schemas.user import UserResponse, UserDetail


router = APIRouter(prefix="/auth", tags=["Authentication"])


class AuthController:
    """Controller for authentication operations."""

    def __init__(self, db: Session):
        self._service = AuthService(db)

    def _token_response(self, user: User, access_token: str, refresh_token: str) -> TokenResponse:
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._service.get_token_expiry_seconds(),
            user=UserInfo.model_validate(user),
        )

    def register(self, request: RegisterRequest) -> UserResponse:
        """Create a staff account."""
        user = self._service.register(request)
        return UserResponse(user=UserDetail.model_validate(user))

    def login(self, request: LoginRequest) -> TokenResponse:
        """Authenticate user and generate tokens."""
        return self._token_response(
            *self._service.authenticate(request.email, request.password)
        )

    def refresh(self, request: RefreshRequest) -> TokenResponse:
        """Refresh tokens."""
        return self._token_response(
            *self._service.refresh_tokens(request.refresh_token)
        )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new staff account."""
    controller = AuthController(db)
    return controller.register(request)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate user and get tokens."""
    controller = AuthController(db)
    return controller.login(request)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshRequest, db: Session = Depends(get_db)):
    """Refresh access token using refresh token."""
    controller = AuthController(db)
    return controller.refresh(request)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return CurrentUserResponse(user=CurrentUserInfo.model_validate(user))
