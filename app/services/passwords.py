"""Password hashing backed by bcrypt."""

from __future__ import annotations

import logging
import secrets

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted, deliberately slow one-way password hashing."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # Hash of a random secret used to equalise timing for unknown users.
        self._dummy_hash = self.hash(secrets.token_urlsafe(16))

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Return a bcrypt hash embedding a fresh salt and the cost factor."""

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")

    def verify(self, password: str, hashed: str) -> bool:
        """Check ``password`` against ``hashed`` in constant time.

        Malformed hashes and oversize passwords verify as ``False``.
        """

        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("ascii"))
        except (ValueError, TypeError, UnicodeEncodeError):
            logger.debug("Password verification failed on malformed input")
            return False

    def verify_dummy(self, password: str) -> bool:
        """Spend the same bcrypt work as :meth:`verify`; always ``False``."""

        self.verify(password, self._dummy_hash)
        return False
