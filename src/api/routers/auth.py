"""Registration, login, and account endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_current_user_id,
    get_password_hasher,
    get_token_service,
)
from core.security import PasswordHasher
from models.user import User
from schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    CookieConsentUpdate,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from services import user_service
from services.exceptions import UserNotFoundError
from services.token_service import TokenService

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User, token_service: TokenService) -> AuthResponse:
    return AuthResponse(
        token=token_service.issue(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_async_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """
    Create an account and return a token for it.

    Returns 409 if the email or username is already taken.
    """
    user = await user_service.register_user(
        db, hasher, data.email, data.username, data.password,
    )
    return _auth_response(user, token_service)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Exchange email and password for a token. Any mismatch returns the same 401."""
    user = await user_service.authenticate_user(db, hasher, data.email, data.password)
    return _auth_response(user, token_service)


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """Get the current authenticated user's info."""
    user = await user_service.get_user(db, user_id)
    if user is None:
        raise UserNotFoundError()
    return user


@router.put("/cookie-consent", response_model=UserResponse)
async def update_cookie_consent(
    data: CookieConsentUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """Grant or revoke cookie consent for the current user."""
    return await user_service.update_cookie_consent(db, user_id, data.cookie_consent)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> MessageResponse:
    """Change the current user's password. The current password must be supplied."""
    await user_service.change_password(
        db, hasher, user_id, data.old_password, data.new_password,
    )
    return MessageResponse(message="Password changed successfully")
