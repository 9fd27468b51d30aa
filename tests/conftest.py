# tests/conftest.py
"""
Test bootstrap
- Env is set BEFORE importing the app so module-level config picks it up
- Every test gets its own SQLite file under tmp_path
- Exposes store/session/repository fixtures and an httpx client over the ASGI app
"""

import os

os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEMO_MODE", "false")

import pytest
from httpx import AsyncClient, ASGITransport

from app.core.db import Store
from app.main import create_app
from app.repositories.media import MediaItemRepository
from app.repositories.user import UserRepository


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'media_tracker_test.db'}"


# ──────────────────────────────────────────────────────────────────────────────
# Store / repositories
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture
async def store(tmp_path, anyio_backend):
    store = Store(_sqlite_url(tmp_path))
    await store.init()
    yield store
    await store.dispose()


@pytest.fixture
async def session(store):
    async with store.session_factory() as session:
        yield session


@pytest.fixture
def media_repo(session) -> MediaItemRepository:
    return MediaItemRepository(session)


@pytest.fixture
def user_repo(session) -> UserRepository:
    return UserRepository(session)


@pytest.fixture
async def alice(user_repo):
    return await user_repo.create("alice", "alice@example.com", "secret1")


@pytest.fixture
async def bob(user_repo):
    return await user_repo.create("bob", "bob@example.com", "secret2")


# ──────────────────────────────────────────────────────────────────────────────
# App / HTTP client
# ──────────────────────────────────────────────────────────────────────────────
def _build_app(tmp_path, demo_mode: bool):
    return create_app(database_url=_sqlite_url(tmp_path), demo_mode=demo_mode)


@pytest.fixture
async def app(tmp_path, anyio_backend):
    app = _build_app(tmp_path, demo_mode=False)
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def demo_app(tmp_path, anyio_backend):
    app = _build_app(tmp_path, demo_mode=True)
    async with app.router.lifespan_context(app):
        yield app


@pytest.fixture
async def async_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def demo_client(demo_app):
    async with AsyncClient(transport=ASGITransport(app=demo_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def register_user(async_client):
    """Register through the API and return (user, auth headers)."""

    async def _register(username="alice", email=None, password="secret1"):
        resp = await async_client.post(
            "/api/auth/register",
            json={"username": username, "email": email or f"{username}@example.com", "password": password},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register
