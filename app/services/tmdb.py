"""Client for resolving movie metadata from The Movie Database (TMDB)."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PayloadValidationError

from ..config import Settings
from ..errors import UpstreamUnavailable
from ..models import MovieDetails

logger = logging.getLogger(__name__)


class TMDBClient:
    """Resolve movie ids into full TMDB details.

    Every lookup either returns :class:`MovieDetails` or raises
    :class:`UpstreamUnavailable`. Retries are left to callers.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.tmdb_api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._settings = settings
        self._client = http_client
        self._semaphore = asyncio.Semaphore(settings.tmdb_max_concurrency)

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        """Return TMDB details for ``movie_id``."""

        endpoint = f"/movie/{quote(movie_id, safe='')}"
        params = {
            "api_key": self._settings.tmdb_api_key,
            "language": self._settings.tmdb_language,
        }
        try:
            async with self._semaphore:
                response = await self._client.get(endpoint, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "TMDB details lookup for %s failed with status %s",
                movie_id,
                exc.response.status_code,
            )
            raise UpstreamUnavailable(f"Movie {movie_id} could not be resolved") from exc
        except httpx.HTTPError as exc:
            logger.warning("TMDB details lookup for %s failed: %s", movie_id, exc)
            raise UpstreamUnavailable(f"Movie {movie_id} could not be resolved") from exc

        try:
            return MovieDetails.model_validate(response.json())
        except (ValueError, PayloadValidationError) as exc:
            logger.warning("TMDB returned an unusable payload for %s: %s", movie_id, exc)
            raise UpstreamUnavailable(f"Movie {movie_id} could not be resolved") from exc
