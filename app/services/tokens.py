"""Signed, self-contained session tokens."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt

from ..errors import InvalidToken
from ..models import TokenClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenCodec:
    """Issue and verify HS256 JWTs carrying a user's identity claims.

    No state is kept server-side: a token is valid while its signature checks
    out and its expiry lies in the future. Changing the secret invalidates
    every outstanding token.
    """

    def __init__(self, secret: str, default_ttl: timedelta) -> None:
        if not secret:
            raise ValueError("A signing secret is required when initialising TokenCodec")
        self._secret = secret
        self._default_ttl = default_ttl

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def issue(
        self,
        *,
        user_id: str,
        username: str,
        email: str,
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + (ttl if ttl is not None else self._default_ttl)
        payload = {
            "userId": user_id,
            "username": username,
            "email": email,
            "iat": issued_at,
            "exp": expires_at,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Return the claims of a valid token or raise :class:`InvalidToken`.

        Bad signatures, expiry and malformed input all produce the same error.
        """

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "userId"]},
            )
            claims = TokenClaims(
                user_id=str(payload["userId"]),
                username=str(payload.get("username") or ""),
                email=str(payload.get("email") or ""),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            )
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
            logger.debug("Rejected session token: %s", exc)
            raise InvalidToken() from None

        if not claims.user_id:
            raise InvalidToken()
        return claims
