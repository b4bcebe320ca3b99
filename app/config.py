"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SEVEN_DAYS_SECONDS = 7 * 24 * 60 * 60


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Pellicula", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=5000, alias="PORT")

    jwt_secret: SecretStr | None = Field(default=None, alias="JWT_SECRET")
    token_ttl_seconds: int = Field(
        default=SEVEN_DAYS_SECONDS,
        alias="TOKEN_TTL_SECONDS",
        ge=60,
        le=90 * 24 * 60 * 60,
    )
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS", ge=4, le=16)

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    tmdb_timeout_seconds: float = Field(
        default=10.0, alias="TMDB_TIMEOUT_SECONDS", gt=0, le=120
    )
    tmdb_max_concurrency: int = Field(
        default=8, alias="TMDB_MAX_CONCURRENCY", ge=1, le=64
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./pellicula.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("jwt_secret", "tmdb_api_key", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: object) -> object:
        """Treat empty environment values as unset."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
