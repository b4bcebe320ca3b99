"""Structured error taxonomy raised by the service layer.

Services never talk HTTP. Each error carries an :class:`ErrorKind` and a
human-readable message; the transport layer maps kinds to status codes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Stable error codes reported to callers."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    NOT_FOUND = "not_found"
    NOT_FOUND_UPSTREAM = "not_found_upstream"
    ALREADY_FAVORITED = "already_favorited"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"


class ServiceError(Exception):
    """Base class for every error a service reports to its caller."""

    kind: ErrorKind = ErrorKind.VALIDATION
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.kind.value, "message": self.message}


class ValidationError(ServiceError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class ConflictError(ServiceError):
    """A uniqueness rule was violated; ``field`` names the offending field."""

    kind = ErrorKind.CONFLICT

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field.capitalize()} already in use")

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["field"] = self.field
        return payload


class InvalidCredentials(ServiceError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class MissingToken(ServiceError):
    kind = ErrorKind.MISSING_TOKEN
    default_message = "Access token required"


class InvalidToken(ServiceError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Invalid or expired token"


class NotFound(ServiceError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class NotFoundUpstream(ServiceError):
    kind = ErrorKind.NOT_FOUND_UPSTREAM
    default_message = "Movie not found"


class AlreadyFavorited(ServiceError):
    kind = ErrorKind.ALREADY_FAVORITED
    default_message = "Movie already in favourites"


class UpstreamUnavailable(ServiceError):
    """The catalog could not resolve a single item."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    default_message = "Catalog lookup failed"
