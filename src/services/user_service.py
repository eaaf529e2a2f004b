"""Service layer for registration, login, and account updates."""
import logging
import re
from datetime import datetime, UTC
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from core.security import PasswordHasher
from models.user import User
from services.exceptions import (
    ConflictError,
    DuplicateAccountError,
    DuplicateEmailError,
    DuplicateUsernameError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    UserNotFoundError,
    storage_errors,
)

logger = logging.getLogger(__name__)

# Matches the conflicting column in both PostgreSQL ("users_email_key") and
# SQLite ("UNIQUE constraint failed: users.email") violation messages.
_UNIQUE_COLUMN_PATTERN = re.compile(r"users[._](email|username)")


def conflict_from_integrity_error(error: IntegrityError) -> ConflictError:
    """Map a uniqueness violation on the users table to the matching domain error."""
    match = _UNIQUE_COLUMN_PATTERN.search(str(error.orig))
    if match is None:
        return DuplicateAccountError()
    if match.group(1) == "email":
        return DuplicateEmailError()
    return DuplicateUsernameError()


async def register_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    email: str,
    username: str,
    password: str,
) -> User:
    """
    Create a new user with a hashed password and cookie consent off.

    Raises:
        PasswordHashError: If the password cannot be hashed.
        DuplicateEmailError / DuplicateUsernameError / DuplicateAccountError:
            On a uniqueness violation.
        StorageError: On any other database failure.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    password_hash = await run_in_threadpool(hasher.hash, password)

    user = User(email=email, username=username, password_hash=password_hash)
    with storage_errors("create account"):
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            conflict = conflict_from_integrity_error(e)
            logger.info("Registration rejected: %s", conflict.message)
            raise conflict from e
        await db.refresh(user)
    return user


async def authenticate_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    email: str,
    password: str,
) -> User:
    """
    Look up a user by exact email and check the password.

    Raises:
        InvalidCredentialsError: If the email is unknown or the password is wrong.
            Both cases raise the same error so accounts can't be enumerated.
    """
    with storage_errors("look up account"):
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

    if user is None:
        logger.info("Login failed: unknown email")
        raise InvalidCredentialsError()

    if not await run_in_threadpool(hasher.verify, password, user.password_hash):
        logger.info("Login failed: wrong password for user %s", user.id)
        raise InvalidCredentialsError()

    return user


async def get_user(db: AsyncSession, user_id: UUID) -> User | None:
    """Get a user by ID. Returns None if not found."""
    with storage_errors("fetch user"):
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()


async def change_password(
    db: AsyncSession,
    hasher: PasswordHasher,
    user_id: UUID,
    old_password: str,
    new_password: str,
) -> None:
    """
    Replace a user's password after re-verifying the current one.

    Raises:
        UserNotFoundError: If the user no longer exists.
        IncorrectPasswordError: If old_password doesn't match.
        PasswordHashError: If the new password cannot be hashed.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    user = await get_user(db, user_id)
    if user is None:
        raise UserNotFoundError()

    if not await run_in_threadpool(hasher.verify, old_password, user.password_hash):
        raise IncorrectPasswordError()

    new_hash = await run_in_threadpool(hasher.hash, new_password)
    with storage_errors("change password"):
        user.password_hash = new_hash
        user.updated_at = func.now()
        await db.flush()
        await db.refresh(user)


async def update_cookie_consent(
    db: AsyncSession,
    user_id: UUID,
    consent: bool,
) -> User:
    """
    Record whether the user accepts cookies.

    Granting consent stamps the consent date; revoking clears it.

    Raises:
        UserNotFoundError: If the user no longer exists.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    user = await get_user(db, user_id)
    if user is None:
        raise UserNotFoundError()

    with storage_errors("update cookie consent"):
        user.cookie_consent = consent
        user.cookie_consent_date = datetime.now(UTC) if consent else None
        user.updated_at = func.now()
        await db.flush()
        await db.refresh(user)
    return user
