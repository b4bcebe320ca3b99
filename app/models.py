"""Domain values and Pydantic models describing API payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Iterator

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .utils import as_utc


class FavouriteSet:
    """Insertion-ordered set of catalog ids owned by a single user.

    Only ``add``, ``remove`` and membership checks mutate or inspect it, so a
    persisted favourites array can never hold the same id twice.
    """

    __slots__ = ("_ids",)

    def __init__(self, ids: Iterable[str] | None = None) -> None:
        self._ids: dict[str, None] = {}
        for item_id in ids or ():
            self._ids.setdefault(str(item_id), None)

    def add(self, item_id: str) -> bool:
        """Insert ``item_id``; return ``False`` if it was already present."""

        if item_id in self._ids:
            return False
        self._ids[item_id] = None
        return True

    def remove(self, item_id: str) -> bool:
        """Discard ``item_id``; return whether it was a member."""

        if item_id not in self._ids:
            return False
        del self._ids[item_id]
        return True

    def contains(self, item_id: str) -> bool:
        return item_id in self._ids

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FavouriteSet):
            return NotImplemented
        return set(self._ids) == set(other._ids)

    def __repr__(self) -> str:
        return f"FavouriteSet({list(self._ids)!r})"

    def to_list(self) -> list[str]:
        return list(self._ids)


@dataclass(slots=True)
class User:
    """A registered user as seen by the services."""

    id: str
    username: str
    email: str
    password_hash: str
    created_at: datetime
    favourites: FavouriteSet = field(default_factory=FavouriteSet)

    def to_public(self) -> "PublicUser":
        return PublicUser(
            id=self.id,
            username=self.username,
            email=self.email,
            favourites=self.favourites.to_list(),
            created_at=self.created_at,
        )


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Identity claims carried by a verified session token."""

    user_id: str
    username: str
    email: str
    issued_at: datetime
    expires_at: datetime


class PublicUser(BaseModel):
    """Safe user representation for API responses; never holds the hash."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    favourites: list[str] = Field(default_factory=list)
    created_at: datetime = Field(serialization_alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class AuthResult(BaseModel):
    """Token plus public profile returned from register and login."""

    token: str
    user: PublicUser


class RegisterRequest(BaseModel):
    """Registration payload; field rules are enforced by the auth service."""

    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class FavouriteRequest(BaseModel):
    """Body of ``POST /favourites``; older clients send ``movieId``."""

    model_config = ConfigDict(populate_by_name=True)

    item_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("itemId", "movieId", "item_id"),
    )

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_numeric_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Genre(BaseModel):
    id: int
    name: str


class ProductionCompany(BaseModel):
    id: int
    name: str
    logo_path: str | None = None


class MovieDetails(BaseModel):
    """Full TMDB metadata for one favourite, computed on read."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    overview: str | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    release_date: str | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    genres: list[Genre] = Field(default_factory=list)
    runtime: int | None = None
    production_companies: list[ProductionCompany] = Field(default_factory=list)
    adult: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        # TMDB returns numeric ids; favourites store them as strings.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
