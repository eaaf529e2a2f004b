"""
Shared exceptions for service layer operations.

Every exception carries the HTTP status it maps to. The API layer renders any
`ServiceError` as `{"error": message}`, so subclasses exist to let callers and
tests tell failures apart while the response stays a single category.
"""
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# 400

class ValidationError(ServiceError):
    """Malformed input that passed schema validation but not business rules."""

    status_code = 400


class InvalidDateFormatError(ValidationError):
    """Raised when a session date is not a real calendar date in YYYY-MM-DD form."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__("Invalid date format. Expected YYYY-MM-DD")


class InvalidDurationError(ValidationError):
    """Raised when a session duration is below one minute."""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__("Duration must be at least 1 minute")


class InvalidTimeRangeError(ValidationError):
    """Raised when an export time range is not one of the known values."""

    def __init__(self, value: str, valid: list[str]) -> None:
        self.value = value
        super().__init__(f"Invalid time_range. Valid options: {', '.join(valid)}")


# 401

class AuthenticationError(ServiceError):
    """Credentials or token could not be verified."""

    status_code = 401


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password. The two cases are never distinguished."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class IncorrectPasswordError(AuthenticationError):
    """Raised when the current password does not match during a password change."""

    def __init__(self) -> None:
        super().__init__("Current password is incorrect")


class InvalidTokenError(AuthenticationError):
    """Token is malformed, tampered with, or expired."""

    def __init__(self) -> None:
        super().__init__("Invalid or missing token")


# 404

class NotFoundError(ServiceError):
    """Resource does not exist or is not owned by the caller."""

    status_code = 404


class SessionNotFoundError(NotFoundError):
    """Raised when a poker session is missing or belongs to another user."""

    def __init__(self) -> None:
        super().__init__("Session not found")


class UserNotFoundError(NotFoundError):
    """Raised when the authenticated user id no longer has a user record."""

    def __init__(self) -> None:
        super().__init__("User not found")


# 409

class ConflictError(ServiceError):
    """Uniqueness constraint violation."""

    status_code = 409


class DuplicateEmailError(ConflictError):
    """Raised when registering with an email that is already taken."""

    def __init__(self) -> None:
        super().__init__("An account with this email already exists")


class DuplicateUsernameError(ConflictError):
    """Raised when registering with a username that is already taken."""

    def __init__(self) -> None:
        super().__init__("This username is already taken")


class DuplicateAccountError(ConflictError):
    """Raised when a uniqueness violation cannot be attributed to a column."""

    def __init__(self) -> None:
        super().__init__("An account with these details already exists")


# 500

class InternalError(ServiceError):
    """Storage, connection, or hashing failure."""

    status_code = 500


class PasswordHashError(InternalError):
    """Raised when bcrypt refuses to hash a password."""

    def __init__(self) -> None:
        super().__init__("Failed to hash password")


class ConnectionFailedError(InternalError):
    """Raised when a database connection cannot be acquired."""

    def __init__(self) -> None:
        super().__init__("Database connection failed")


class StorageError(InternalError):
    """Raised when a statement fails for a reason other than a known constraint."""


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """
    Translate SQLAlchemy failures inside the block into StorageError.

    Service errors raised inside the block pass through untouched.

    Args:
        action: What was being attempted, used in the message (e.g. "create session").
    """
    try:
        yield
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise StorageError(f"Failed to {action}") from e
