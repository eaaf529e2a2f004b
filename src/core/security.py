"""Password hashing with bcrypt."""
import base64
import hashlib
import logging

import bcrypt as bcrypt_lib

from services.exceptions import PasswordHashError

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 12


class PasswordHasher:
    """
    Salted bcrypt hashing with a configurable work factor.

    Passwords are pre-hashed with SHA-256 so bcrypt's 72-byte input limit never
    truncates or rejects a long passphrase. Production uses bcrypt's default
    cost; tests pass a low cost (4) so that registration and login stay fast.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    @staticmethod
    def _prehash(password: str) -> bytes:
        """SHA-256 digest, base64 encoded: always 44 ASCII bytes with no NULs."""
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash(self, password: str) -> str:
        """
        Hash a password.

        Raises:
            PasswordHashError: If bcrypt rejects the input.
        """
        try:
            salt = bcrypt_lib.gensalt(rounds=self.rounds)
            return bcrypt_lib.hashpw(self._prehash(password), salt).decode("utf-8")
        except ValueError as e:
            logger.warning("Password hashing failed: %s", e)
            raise PasswordHashError() from e

    def verify(self, password: str, hashed: str) -> bool:
        """Check a password against a stored hash. Malformed hashes never match."""
        try:
            return bcrypt_lib.checkpw(self._prehash(password), hashed.encode("utf-8"))
        except ValueError:
            return False
