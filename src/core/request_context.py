"""Request context types for the authentication gate."""
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class TokenError(StrEnum):
    """Why a request could not be authenticated. Never sent to the client."""

    MISSING = "missing"
    INVALID_FORMAT = "invalid_format"
    INVALID_TOKEN = "invalid_token"
    INVALID_USER_ID = "invalid_user_id"


class AuthGateError(Exception):
    """Raised by header extraction with the tagged reason."""

    def __init__(self, reason: TokenError) -> None:
        self.reason = reason
        super().__init__(reason.value)


@dataclass(frozen=True)
class RequestContext:
    """
    Authenticated principal attached to request.state by the auth gate.

    Absent on public routes.
    """

    user_id: UUID
