"""Service layer for issuing and verifying JWT bearer tokens."""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from uuid import UUID

import jwt

from services.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_EXPIRES_IN = timedelta(days=7)


def utc_now() -> datetime:
    """Return the current wall-clock time in UTC."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class Claims:
    """Decoded token payload."""

    sub: str
    iat: int
    exp: int


class TokenService:
    """
    Issue and verify signed, time-limited bearer tokens.

    The secret is passed in by the caller and never read from the environment,
    so several services with different secrets can coexist (e.g. in tests).
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = DEFAULT_ALGORITHM,
        expires_in: timedelta = DEFAULT_EXPIRES_IN,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in
        self._clock = clock

    def issue(self, user_id: UUID) -> str:
        """Create a token whose subject is the user id."""
        now = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.expires_in).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """
        Decode a token and check its signature and expiry.

        Raises:
            InvalidTokenError: For any failure. Expired, tampered and malformed
                tokens are indistinguishable to the caller.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Token verification failed: %s", e)
            raise InvalidTokenError() from e

        return Claims(sub=payload["sub"], iat=payload["iat"], exp=payload["exp"])
