"""Favourite movie management with read-time enrichment."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ..errors import (
    AlreadyFavorited,
    NotFound,
    NotFoundUpstream,
    UpstreamUnavailable,
    ValidationError,
)
from ..models import FavouriteSet, MovieDetails
from ..utils import clean_text
from .users import CredentialStore

logger = logging.getLogger(__name__)


class CatalogClient(Protocol):
    async def get_movie_details(self, movie_id: str) -> MovieDetails: ...


class FavouritesService:
    """Set-membership operations on a user's favourites."""

    def __init__(self, store: CredentialStore, catalog: CatalogClient):
        self._store = store
        self._catalog = catalog

    async def add(self, user_id: str, item_id: str | None) -> list[str]:
        """Add ``item_id`` once it is confirmed to exist in the catalog.

        The catalog's own id is stored, so aliases of one movie collapse into a
        single member. Adding a movie that is already a member raises
        :class:`AlreadyFavorited` instead of succeeding quietly.
        """

        item_id = clean_text(item_id)
        if not item_id:
            raise ValidationError("Movie ID is required")

        try:
            details = await self._catalog.get_movie_details(item_id)
        except UpstreamUnavailable as exc:
            raise NotFoundUpstream("Movie not found") from exc
        canonical_id = details.id

        def _insert(favourites: FavouriteSet) -> None:
            if not favourites.add(canonical_id):
                raise AlreadyFavorited()

        _, favourites = await self._store.update_favourites(user_id, _insert)
        logger.info("User %s favourited %s", user_id, canonical_id)
        return favourites.to_list()

    async def remove(self, user_id: str, item_id: str | None) -> list[str]:
        """Ensure ``item_id`` is absent; repeating the call is harmless."""

        item_id = clean_text(item_id)
        removed, favourites = await self._store.update_favourites(
            user_id, lambda current: current.remove(item_id)
        )
        if removed:
            logger.info("User %s unfavourited %s", user_id, item_id)
        return favourites.to_list()

    async def list(self, user_id: str) -> list[MovieDetails]:
        """Resolve every favourite concurrently, dropping the ones that fail."""

        user = await self._store.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")

        snapshot = user.favourites.to_list()
        if not snapshot:
            return []

        results = await asyncio.gather(
            *(self._catalog.get_movie_details(item_id) for item_id in snapshot),
            return_exceptions=True,
        )
        resolved: list[MovieDetails] = []
        for item_id, result in zip(snapshot, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Dropping favourite %s for user %s: %s", item_id, user_id, result
                )
                continue
            resolved.append(result)
        return resolved
