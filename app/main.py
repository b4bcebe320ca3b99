"""Entry point for the FastAPI-powered favourites API."""

from __future__ import annotations

import logging
import secrets
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import timedelta
from typing import Any

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings
from .database import Database
from .errors import ErrorKind, ServiceError
from .models import FavouriteRequest, LoginRequest, RegisterRequest, TokenClaims
from .services.auth import AuthService
from .services.favourites import FavouritesService
from .services.passwords import PasswordHasher
from .services.tmdb import TMDBClient
from .services.tokens import TokenCodec
from .services.users import CredentialStore
from .session import SessionMiddleware, require_session

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.MISSING_TOKEN: 401,
    ErrorKind.INVALID_TOKEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NOT_FOUND_UPSTREAM: 404,
    ErrorKind.ALREADY_FAVORITED: 400,
    ErrorKind.UPSTREAM_UNAVAILABLE: 502,
}


def resolve_jwt_secret(config: Settings) -> str:
    """Return the configured signing key, or an ephemeral one in development."""

    if config.jwt_secret is not None:
        return config.jwt_secret.get_secret_value()
    if config.environment == "production":
        raise RuntimeError("JWT_SECRET must be configured in production")
    logger.warning(
        "JWT_SECRET is not set; using an ephemeral key; tokens will not survive a restart"
    )
    return secrets.token_urlsafe(48)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    # Anything entered before a startup failure is still released.
    async with AsyncExitStack() as exit_stack:
        tmdb_http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(
                base_url=str(settings.tmdb_api_url),
                timeout=httpx.Timeout(settings.tmdb_timeout_seconds, connect=5.0),
            )
        )
        catalog = TMDBClient(settings, tmdb_http_client)
        database = Database(settings.database_url)
        exit_stack.push_async_callback(database.dispose)
        await database.create_all()

        store = CredentialStore(database.session_factory)
        tokens = TokenCodec(
            resolve_jwt_secret(settings),
            timedelta(seconds=settings.token_ttl_seconds),
        )
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

        fastapi_app.state.database = database
        fastapi_app.state.auth_service = AuthService(store, hasher, tokens)
        fastapi_app.state.favourites_service = FavouritesService(store, catalog)
        fastapi_app.state.session_middleware = SessionMiddleware(tokens)

        yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Personal favourite movies enriched from TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_auth_service(app: FastAPI) -> AuthService:
    service = getattr(app.state, "auth_service", None)
    if not isinstance(service, AuthService):
        raise RuntimeError("Auth service not initialised")
    return service


def get_favourites_service(app: FastAPI) -> FavouritesService:
    service = getattr(app.state, "favourites_service", None)
    if not isinstance(service, FavouritesService):
        raise RuntimeError("Favourites service not initialised")
    return service


def register_routes(fastapi_app: FastAPI) -> None:
    async def _service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(
            status_code=ERROR_STATUS.get(exc.kind, 400), content=exc.to_payload()
        )

    async def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"code": ErrorKind.VALIDATION.value, "message": "Invalid request body"},
        )

    fastapi_app.add_exception_handler(ServiceError, _service_error_handler)
    fastapi_app.add_exception_handler(RequestValidationError, _request_validation_handler)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/auth/register", status_code=201)
    async def register(payload: RegisterRequest) -> dict[str, Any]:
        service = get_auth_service(fastapi_app)
        result = await service.register(payload.username, payload.email, payload.password)
        return {
            "message": "User registered successfully",
            **result.model_dump(mode="json", by_alias=True),
        }

    @fastapi_app.post("/auth/login")
    async def login(payload: LoginRequest) -> dict[str, Any]:
        service = get_auth_service(fastapi_app)
        result = await service.login(payload.email, payload.password)
        return {
            "message": "Login successful",
            **result.model_dump(mode="json", by_alias=True),
        }

    @fastapi_app.get("/auth/profile")
    async def profile(claims: TokenClaims = Depends(require_session)) -> dict[str, Any]:
        service = get_auth_service(fastapi_app)
        user = await service.get_profile(claims.user_id)
        return {"user": user.model_dump(mode="json", by_alias=True)}

    @fastapi_app.get("/favourites")
    async def list_favourites(
        claims: TokenClaims = Depends(require_session),
    ) -> list[dict[str, Any]]:
        service = get_favourites_service(fastapi_app)
        movies = await service.list(claims.user_id)
        return [movie.model_dump(mode="json") for movie in movies]

    @fastapi_app.post("/favourites")
    async def add_favourite(
        payload: FavouriteRequest,
        claims: TokenClaims = Depends(require_session),
    ) -> dict[str, Any]:
        service = get_favourites_service(fastapi_app)
        favourites = await service.add(claims.user_id, payload.item_id)
        return {"message": "Movie added to favourites", "favourites": favourites}

    @fastapi_app.delete("/favourites/{item_id}")
    async def remove_favourite(
        item_id: str,
        claims: TokenClaims = Depends(require_session),
    ) -> dict[str, Any]:
        service = get_favourites_service(fastapi_app)
        favourites = await service.remove(claims.user_id, item_id)
        return {"message": "Movie removed from favourites", "favourites": favourites}


app = create_app()
