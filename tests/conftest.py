"""
tests/conftest.py -- Shared test fixtures for the blog API tests.

This module provides:
  - user_store / post_store: in-memory stores for unit tests
  - token_service, user_service, post_service, auth_gate: the service graph
    over those stores, built the same way api/main.py builds it
  - api_client: TestClient over the real app with a patched lifespan, plus a
    registered account and its bearer token
  - make_account: register + login helper for tests that need extra users

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the api_client because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

Environment must be set before any api/auth/core import:
  DEBUG=true               get_settings() auto-generates SECRET_KEY
  BCRYPT_COST=4            keeps every hash in the suite fast
  RATE_LIMIT_ENABLED=false the limiter never blocks repeated logins
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_COST", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, attach_services
from auth.gate import AuthGate
from auth.service import UserService
from auth.store import UserStore
from auth.tokens import TokenService
from blog.service import PostService
from blog.store import PostStore
from core.config import get_settings

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters"
TEST_PASSWORD = "testpass123"

_db_counter = itertools.count()


def _shared_memory_url(prefix: str) -> str:
    """Return a fresh named shared-memory SQLite URL (unique per call)."""
    return f"sqlite:///file:{prefix}_{next(_db_counter)}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def post_store() -> Generator[PostStore, None, None]:
    store = PostStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def user_service(user_store: UserStore, token_service: TokenService) -> UserService:
    return UserService(user_store, token_service, bcrypt_cost=4)


@pytest.fixture
def post_service(post_store: PostStore) -> PostService:
    return PostService(post_store, page_size=10)


@pytest.fixture
def auth_gate(token_service: TokenService, user_store: UserStore) -> AuthGate:
    return AuthGate(token_service, user_store)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, post_store: PostStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state through attach_services(),
    so routes see isolated test DBs but the same service graph as production.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        attach_services(app, get_settings(), user_store, post_store)
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    Function-scoped: several tests change passwords or delete posts, and each
    test gets its own pair of in-memory databases. The account "testuser"
    (password TEST_PASSWORD) is registered and logged in through the real
    routes before the test body runs.
    """
    user_store = UserStore(_shared_memory_url("test_users"))
    post_store = PostStore(_shared_memory_url("test_posts"))
    app.router.lifespan_context = _patch_lifespan(user_store, post_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        resp = client.post(
            "/api/v1/register",
            json={"username": "testuser", "email": "testuser@example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 201, resp.text
        uid = resp.json()["id"]
        resp = client.post("/api/v1/login", json={"username": "testuser", "password": TEST_PASSWORD})
        assert resp.status_code == 200, resp.text
        yield client, resp.json()["access_token"], uid

    post_store.close()
    user_store.close()


@pytest.fixture
def make_account(api_client: tuple[TestClient, str, int]) -> Callable[[str], tuple[str, int]]:
    """Return a helper that registers and logs in another user: name -> (token, user_id)."""
    client, _token, _uid = api_client

    def _make(username: str) -> tuple[str, int]:
        resp = client.post(
            "/api/v1/register",
            json={"username": username, "email": f"{username}@example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 201, resp.text
        login = client.post("/api/v1/login", json={"username": username, "password": TEST_PASSWORD})
        assert login.status_code == 200, login.text
        return login.json()["access_token"], resp.json()["id"]

    return _make
