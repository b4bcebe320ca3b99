"""Registration, login and profile lookups."""

from __future__ import annotations

import asyncio
import logging

from ..errors import ConflictError, InvalidCredentials, NotFound, ValidationError
from ..models import AuthResult, PublicUser, User
from ..utils import clean_text, is_valid_email, normalise_email
from .passwords import MAX_PASSWORD_BYTES, PasswordHasher
from .tokens import TokenCodec
from .users import CredentialStore

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6


class AuthService:
    """Orchestrates credential checks, persistence and token issuance."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        tokens: TokenCodec,
    ):
        self._store = store
        self._hasher = hasher
        self._tokens = tokens

    async def register(
        self, username: str | None, email: str | None, password: str | None
    ) -> AuthResult:
        """Create a user and return a fresh session token for it."""

        username = clean_text(username)
        email = normalise_email(email)
        password = password if isinstance(password, str) else ""

        if not username or not email or not password:
            raise ValidationError("All fields are required")
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username must be between {USERNAME_MIN_LENGTH} and "
                f"{USERNAME_MAX_LENGTH} characters"
            )
        if not is_valid_email(email):
            raise ValidationError("Email address is not valid")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

        # Email wins over username when both are taken.
        if await self._store.get_by_email(email) is not None:
            raise ConflictError("email", "Email already registered")
        if await self._store.get_by_username(username) is not None:
            raise ConflictError("username", "Username already taken")

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        user = await self._store.create(
            username=username, email=email, password_hash=password_hash
        )
        logger.info("Registered user %s", user.id)
        return self._issue(user)

    async def login(self, email: str | None, password: str | None) -> AuthResult:
        """Exchange valid credentials for a session token.

        Unknown emails and wrong passwords raise the same error after the same
        amount of hashing work.
        """

        email = normalise_email(email)
        password = password if isinstance(password, str) else ""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self._store.get_by_email(email)
        if user is None:
            await asyncio.to_thread(self._hasher.verify_dummy, password)
            logger.info("Rejected login attempt")
            raise InvalidCredentials()

        valid = await asyncio.to_thread(self._hasher.verify, password, user.password_hash)
        if not valid:
            logger.info("Rejected login attempt")
            raise InvalidCredentials()

        logger.info("User %s logged in", user.id)
        return self._issue(user)

    async def get_profile(self, user_id: str) -> PublicUser:
        """Return the current persisted profile, not the token's snapshot."""

        user = await self._store.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user.to_public()

    def _issue(self, user: User) -> AuthResult:
        token = self._tokens.issue(
            user_id=user.id, username=user.username, email=user.email
        )
        return AuthResult(token=token, user=user.to_public())
