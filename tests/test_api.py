"""HTTP-level tests covering the auth and favourites routes."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.database import Database
from app.main import register_routes
from app.services.auth import AuthService
from app.services.favourites import FavouritesService
from app.services.users import CredentialStore
from app.session import SessionMiddleware

from conftest import FakeCatalog


def build_app(database_url, hasher, token_codec, catalog: FakeCatalog) -> FastAPI:
    """Assemble the routes with real services and an in-memory catalog."""

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        database = Database(database_url)
        await database.create_all()
        store = CredentialStore(database.session_factory)
        fastapi_app.state.auth_service = AuthService(store, hasher, token_codec)
        fastapi_app.state.favourites_service = FavouritesService(store, catalog)
        fastapi_app.state.session_middleware = SessionMiddleware(token_codec)
        try:
            yield
        finally:
            await database.dispose()

    app = FastAPI(lifespan=lifespan)
    register_routes(app)
    return app


@pytest.fixture
def client(database_url, hasher, token_codec, catalog):
    with TestClient(build_app(database_url, hasher, token_codec, catalog)) as test_client:
        yield test_client


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_end_to_end_favourites_flow(client: TestClient) -> None:
    """register, login, add, list, remove, list."""

    registered = client.post(
        "/auth/register",
        json={"username": "alice", "email": "alice@x.com", "password": "secret1"},
    )
    assert registered.status_code == 201
    assert registered.json()["user"]["favourites"] == []
    assert "password" not in registered.json()["user"]

    login = client.post("/auth/login", json={"email": "alice@x.com", "password": "secret1"})
    assert login.status_code == 200
    token = login.json()["token"]
    assert login.json()["user"]["id"] == registered.json()["user"]["id"]
    assert "createdAt" in login.json()["user"]

    added = client.post("/favourites", json={"itemId": "603"}, headers=_auth(token))
    assert added.status_code == 200
    assert added.json()["favourites"] == ["603"]

    listed = client.get("/favourites", headers=_auth(token))
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == ["603"]
    assert listed.json()[0]["title"] == "The Matrix"

    removed = client.delete("/favourites/603", headers=_auth(token))
    assert removed.status_code == 200
    assert removed.json()["favourites"] == []

    assert client.get("/favourites", headers=_auth(token)).json() == []


def test_register_errors_map_to_bad_request(client: TestClient) -> None:
    body = {"username": "alice", "email": "alice@x.com", "password": "secret1"}
    assert client.post("/auth/register", json=body).status_code == 201

    conflict = client.post("/auth/register", json={**body, "username": "alice2"})
    invalid = client.post("/auth/register", json={**body, "password": "123"})
    malformed = client.post("/auth/register", content=b"not json")

    assert conflict.status_code == 400
    assert conflict.json() == {
        "code": "conflict",
        "message": "Email already registered",
        "field": "email",
    }
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "validation"
    assert malformed.status_code == 400
    assert malformed.json()["code"] == "validation"


def test_login_failures_share_one_response(client: TestClient) -> None:
    client.post(
        "/auth/register",
        json={"username": "alice", "email": "alice@x.com", "password": "secret1"},
    )

    wrong_password = client.post("/auth/login", json={"email": "alice@x.com", "password": "nope123"})
    unknown_email = client.post("/auth/login", json={"email": "bob@x.com", "password": "secret1"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()


def test_profile_requires_token_and_tracks_favourites(client: TestClient) -> None:
    token = client.post(
        "/auth/register",
        json={"username": "alice", "email": "alice@x.com", "password": "secret1"},
    ).json()["token"]

    assert client.get("/auth/profile").status_code == 401
    assert client.get("/auth/profile", headers=_auth("garbage")).status_code == 403

    client.post("/favourites", json={"movieId": 550}, headers=_auth(token))
    profile = client.get("/auth/profile", headers=_auth(token))

    assert profile.status_code == 200
    assert profile.json()["user"]["favourites"] == ["550"]
    assert profile.json()["user"]["username"] == "alice"


def test_profile_for_deleted_user_is_not_found(client: TestClient, token_codec) -> None:
    token = token_codec.issue(user_id="gone", username="ghost", email="ghost@x.com")

    response = client.get("/auth/profile", headers=_auth(token))

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_add_favourite_error_statuses(client: TestClient) -> None:
    token = client.post(
        "/auth/register",
        json={"username": "alice", "email": "alice@x.com", "password": "secret1"},
    ).json()["token"]

    missing = client.post("/favourites", json={}, headers=_auth(token))
    unknown = client.post("/favourites", json={"itemId": "424242"}, headers=_auth(token))
    first = client.post("/favourites", json={"itemId": "13"}, headers=_auth(token))
    duplicate = client.post("/favourites", json={"itemId": "13"}, headers=_auth(token))
    unauthenticated = client.post("/favourites", json={"itemId": "13"})

    assert missing.status_code == 400
    assert missing.json()["code"] == "validation"
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "not_found_upstream"
    assert first.status_code == 200
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "already_favorited"
    assert unauthenticated.status_code == 401


def test_list_degrades_when_catalog_misses_items(client: TestClient, catalog: FakeCatalog) -> None:
    token = client.post(
        "/auth/register",
        json={"username": "alice", "email": "alice@x.com", "password": "secret1"},
    ).json()["token"]
    client.post("/favourites", json={"itemId": "603"}, headers=_auth(token))
    client.post("/favourites", json={"itemId": "550"}, headers=_auth(token))
    del catalog.known["603"]

    response = client.get("/favourites", headers=_auth(token))

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == ["550"]


@pytest.mark.parametrize(
    ("method", "path"),
    [("GET", "/favourites"), ("DELETE", "/favourites/603")],
)
def test_favourite_routes_reject_missing_and_invalid_tokens(
    client: TestClient, method: str, path: str
) -> None:
    token = client.post(
        "/auth/register",
        json={"username": "alice", "email": "alice@x.com", "password": "secret1"},
    ).json()["token"]
    client.post("/favourites", json={"itemId": "603"}, headers=_auth(token))

    missing = client.request(method, path)
    invalid = client.request(method, path, headers=_auth("garbage"))
    basic = client.request(method, path, headers={"Authorization": "Basic xyz"})

    assert missing.status_code == 401
    assert missing.json()["code"] == "missing_token"
    assert invalid.status_code == 403
    assert invalid.json()["code"] == "invalid_token"
    assert basic.status_code == 403
    remaining = client.get("/favourites", headers=_auth(token)).json()
    assert [item["id"] for item in remaining] == ["603"]


def test_healthcheck(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}
