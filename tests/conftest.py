"""
tests/conftest.py -- Shared test fixtures for the auth service.

This module provides:
  - store: an isolated in-memory SqlStore with app 42 registered
  - hasher: a PasswordHasher at the bcrypt minimum cost (4 rounds) for speed
  - engine: an AuthEngine over store + hasher
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs the app on a separate thread and engine
calls run in asyncio.to_thread workers. Plain :memory: DBs are per-connection
and would present a blank schema to each worker thread.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_engine
from auth.engine import AuthEngine
from auth.models import App
from auth.store import SqlStore
from auth.tokens import PasswordHasher, TokenIssuer

APP_ID = 42
APP_SECRET = "a" * 64
OTHER_APP_ID = 7
OTHER_APP_SECRET = "b" * 64
TOKEN_TTL = timedelta(hours=1)


def _make_store(name: str) -> SqlStore:
    """Create a named shared-memory store with two apps registered.

    The name keeps test modules from seeing each other's rows.
    """
    store = SqlStore(f"sqlite:///file:test_auth_{name}?mode=memory&cache=shared&uri=true")
    store.save_app(App(id=APP_ID, name="billing", secret=APP_SECRET))
    store.save_app(App(id=OTHER_APP_ID, name="reports", secret=OTHER_APP_SECRET))
    return store


@pytest.fixture
def store() -> Generator[SqlStore, None, None]:
    s = _make_store(uuid.uuid4().hex)
    yield s
    s.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def engine(store: SqlStore, hasher: PasswordHasher) -> AuthEngine:
    return AuthEngine(logging.getLogger("sso.test"), store, store, hasher, TokenIssuer(), TOKEN_TTL)


def _patch_lifespan(store: SqlStore, request_timeout: float = 5.0):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store into app.state so TestClient routes never touch the
    configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.engine = build_engine(store, PasswordHasher(rounds=4), int(TOKEN_TTL.total_seconds()))
        app.state.token_ttl_seconds = int(TOKEN_TTL.total_seconds())
        app.state.request_timeout = request_timeout
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, SqlStore], None, None]:
    """Yield (client, store) for API integration tests.

    One client per test module. Tests that need a fresh email should make it
    unique (uuid suffix) because the store is shared across the module.
    """
    store = _make_store(f"api_{uuid.uuid4().hex}")
    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client, store

    store.close()
