"""Pydantic schemas for authentication and account endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.networks import validate_email


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    email: str = Field(..., max_length=255)
    username: str = Field(
        ...,
        min_length=3,
        max_length=100,
        description="Username must be between 3 and 100 characters",
    )
    password: str = Field(..., min_length=8, description="At least 8 characters")

    @field_validator("email")
    @classmethod
    def check_email_format(cls, v: str) -> str:
        """
        Validate the address format but store it exactly as typed.

        EmailStr would lowercase the domain, and logins match email case-sensitively.
        """
        validate_email(v)
        return v


class LoginRequest(BaseModel):
    """Schema for logging in. Email is matched exactly, including case."""

    email: str
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    """Schema for changing the current user's password."""

    old_password: str
    new_password: str = Field(..., min_length=8, description="At least 8 characters")


class CookieConsentUpdate(BaseModel):
    """Schema for granting or revoking cookie consent."""

    cookie_consent: bool


class UserResponse(BaseModel):
    """
    Public view of a user.

    Does NOT include the password hash.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    cookie_consent: bool
    cookie_consent_date: datetime | None
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    """Response for register and login: a bearer token plus the user."""

    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
