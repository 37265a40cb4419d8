"""Unit test fixtures with faked database access."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from auth import repository as auth_repository
from auth import security
from core.dependencies import get_pool


class FakePool:
    """Stands in for asyncpg.Pool; records statements and close()."""

    def __init__(self):
        self.closed = False
        self.executed: list[tuple] = []

    async def execute(self, sql, *args):
        self.executed.append((sql, args))

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_pool():
    return FakePool()


@pytest.fixture
def app(fake_pool):
    from main import create_app

    application = create_app()

    async def _pool():
        return fake_pool

    application.dependency_overrides[get_pool] = _pool
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    # Not used as a context manager, so the lifespan (and DATABASE_URL) is skipped.
    return TestClient(app)


@pytest.fixture
def current_user():
    return {
        "id": 7,
        "email": "viewer@example.com",
        "password_hash": "",
        "created_at": None,
        "updated_at": None,
    }


@pytest.fixture
def auth_headers(monkeypatch, current_user):
    async def _get_user_by_id(pool, user_id):
        return current_user if user_id == current_user["id"] else None

    monkeypatch.setattr(auth_repository, "get_user_by_id", _get_user_by_id)
    token, _ = security.build_session_token(user_id=current_user["id"], email=current_user["email"])
    return {"Authorization": f"Bearer {token}"}
