"""Per-request bearer token verification for protected routes."""

from __future__ import annotations

from fastapi import Request

from .errors import InvalidToken, MissingToken
from .models import TokenClaims
from .services.tokens import TokenCodec


class SessionMiddleware:
    """Turn an ``Authorization`` header into verified identity claims.

    A header without a credential raises :class:`MissingToken` (HTTP 401). A
    credential that is not a valid bearer token, whatever its scheme, raises
    :class:`InvalidToken` (HTTP 403). Nothing else about the rejection is
    exposed.
    """

    def __init__(self, tokens: TokenCodec):
        self._tokens = tokens

    def authenticate(self, authorization: str | None) -> TokenClaims:
        scheme, credentials = self.split_authorization(authorization)
        if not credentials:
            raise MissingToken()
        if scheme.lower() != "bearer":
            raise InvalidToken()
        return self._tokens.verify(credentials)

    @staticmethod
    def split_authorization(authorization: str | None) -> tuple[str, str]:
        """Split ``"<scheme> <credentials>"``; either part may come back empty."""

        if not authorization:
            return "", ""
        scheme, _, credentials = authorization.strip().partition(" ")
        return scheme, credentials.strip()


def get_session_middleware(request: Request) -> SessionMiddleware:
    middleware = getattr(request.app.state, "session_middleware", None)
    if not isinstance(middleware, SessionMiddleware):
        raise RuntimeError("Session middleware not initialised")
    return middleware


async def require_session(request: Request) -> TokenClaims:
    """FastAPI dependency guarding protected routes."""

    claims = get_session_middleware(request).authenticate(
        request.headers.get("Authorization")
    )
    request.state.session = claims
    return claims
