"""Utility helpers for the Pellicula service."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from email_validator import EmailNotValidError, validate_email


def clean_text(value: object) -> str:
    """Return a stripped string, treating ``None`` and non-strings as empty."""

    if not isinstance(value, str):
        return ""
    return value.strip()


def normalise_email(value: object) -> str:
    """Trim and lowercase an email address for storage and lookups."""

    return clean_text(value).lower()


def is_valid_email(value: str) -> bool:
    """Return whether ``value`` looks like an email address (no DNS lookups)."""

    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def new_user_id() -> str:
    """Generate an opaque identifier for a new user record."""

    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends that drop zones."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
