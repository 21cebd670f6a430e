"""
tests/conftest.py -- Shared test fixtures for Taskboard tests.

This module provides:
  - make_settings(): Settings with a fixed secret, cheap bcrypt and a given DB URL
  - api_client: TestClient over create_app() with isolated in-memory stores
  - register_and_login: fixture returning a helper that creates an account and
    yields (user_id, auth headers)

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"


def make_settings(database_url: str = "sqlite:///:memory:", **overrides) -> Settings:
    """Build Settings for tests without reading the process environment's secret.

    bcrypt_rounds=4 is the bcrypt minimum and keeps hashing fast.
    """
    values = {
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "database_url": database_url,
        "token_expire_seconds": 3600,
    }
    values.update(overrides)
    return Settings(**values)


def shared_memory_url(name: str) -> str:
    """Return a unique named shared-memory SQLite URL."""
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _register_and_login(client: TestClient, email: str, password: str = "correct horse") -> tuple[int, dict]:
    reg = client.post("/register", json={"email": email, "password": password})
    assert reg.status_code == 200, f"register failed: {reg.status_code} {reg.text}"
    login = client.post("/login", json={"email": email, "password": password})
    assert login.status_code == 200, f"login failed: {login.status_code} {login.text}"
    return reg.json()["id"], {"Authorization": f"Bearer {login.json()['token']}"}


@pytest.fixture
def settings() -> Settings:
    return make_settings(shared_memory_url("taskboard"))


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient running the real app against a fresh in-memory database.

    Module-scoped for speed: tests in one module share the database, so each
    test registers its own uniquely named accounts.
    """
    app = create_app(make_settings(shared_memory_url("api")))
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def register_and_login():
    """Return a helper that registers + logs in an account: (client, email) -> (user_id, headers)."""
    return _register_and_login


@pytest.fixture
def settings_factory():
    """Return a callable building Settings on a fresh in-memory database, with overrides."""

    def _factory(**overrides) -> Settings:
        return make_settings(shared_memory_url("app"), **overrides)

    return _factory
