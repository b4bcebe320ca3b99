"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest


# Ensure the application package is importable when running tests without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from app.errors import UpstreamUnavailable  # noqa: E402
from app.models import MovieDetails  # noqa: E402
from app.services.passwords import PasswordHasher  # noqa: E402
from app.services.tokens import TokenCodec  # noqa: E402

TEST_SECRET = "test-signing-secret-with-plenty-of-entropy-0123456789"


class FakeCatalog:
    """In-memory stand-in for the TMDB client."""

    def __init__(self, known: dict[str, str] | None = None) -> None:
        self.known = dict(known or {})
        self.calls: list[str] = []

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        self.calls.append(movie_id)
        title = self.known.get(movie_id)
        if title is None:
            raise UpstreamUnavailable(f"Movie {movie_id} could not be resolved")
        return MovieDetails(id=movie_id, title=title, overview=f"About {title}")


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET, timedelta(days=7))


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog({"603": "The Matrix", "550": "Fight Club", "13": "Forrest Gump"})


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'pellicula-test.db'}"
