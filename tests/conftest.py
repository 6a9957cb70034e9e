"""
tests/conftest.py -- Shared test fixtures for SessionGate.

This module provides:
  - FakeClock: a controllable clock so session expiry can be tested without sleeping
  - stores: isolated UserStore + SessionStore + AuthService on one in-memory DB
  - client: TestClient wired to those stores through a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool and because the
two stores own separate engines. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process. Each test gets its own name.

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY instead of raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import ROLE_ADMIN, User
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore

SESSION_TTL = 60 * 60 * 24


class FakeClock:
    """Stands in for time.time; tests move it forward explicitly."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class Stores:
    users: UserStore
    sessions: SessionStore
    service: AuthService
    clock: FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stores(clock: FakeClock) -> Generator[Stores, None, None]:
    """Fresh stores sharing one named in-memory database."""
    db_url = f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    users = UserStore(db_url)
    sessions = SessionStore(db_url, ttl=SESSION_TTL, clock=clock)
    yield Stores(users=users, sessions=sessions, service=AuthService(users, sessions), clock=clock)
    sessions.close()
    users.close()


def _patch_lifespan(stores: Stores):
    """Return a lifespan that wires the test stores into app.state.

    Skips the real startup (no engine from DATABASE_URL, no purge task).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = stores.users
        app.state.session_store = stores.sessions
        app.state.auth_service = stores.service
        yield

    return test_lifespan


@pytest.fixture
def client(stores: Stores) -> Generator[TestClient, None, None]:
    """TestClient against the real app and routes, backed by the isolated stores."""
    app.router.lifespan_context = _patch_lifespan(stores)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def admin(stores: Stores) -> User:
    """An admin account ("root" / "rootpass"). Sign-up over HTTP cannot create one."""
    return stores.service.sign_up("root", "rootpass", role=ROLE_ADMIN)
