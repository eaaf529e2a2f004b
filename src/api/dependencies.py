"""FastAPI dependencies for injection."""
from fastapi import Request

from core.auth import get_current_user_id
from core.security import PasswordHasher
from db.session import get_async_session
from services.token_service import TokenService


def get_password_hasher(request: Request) -> PasswordHasher:
    """Return the hasher configured for this app."""
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    """Return the token service configured for this app."""
    return request.app.state.token_service


__all__ = [
    "get_async_session",
    "get_current_user_id",
    "get_password_hasher",
    "get_token_service",
]
