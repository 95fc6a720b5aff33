"""Shared fixtures for the user service tests.

Uses SQLite (aiosqlite) by default, so no PostgreSQL server is required.
Set TEST_DATABASE_URL to override (e.g. for CI with real PostgreSQL).
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Ensure the application engine can be created without a PostgreSQL server
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from user_service.database import Base, enable_sqlite_foreign_keys  # noqa: E402

# ---------------------------------------------------------------------------
# Engine: SQLite in-memory with StaticPool (shared across connections)
# ---------------------------------------------------------------------------

_engine_kwargs = {}
if TEST_DATABASE_URL.startswith("sqlite"):
    _engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }

_engine = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_kwargs)
enable_sqlite_foreign_keys(_engine)
_TestSession = async_sessionmaker(
    bind=_engine, class_=AsyncSession, expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Session-scoped: create / drop tables
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="session", autouse=True)
async def _setup_tables():
    import user_service.models  # noqa: F401  populate Base.metadata

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await _engine.dispose()


# ---------------------------------------------------------------------------
# Reset rate-limiter counters before every test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Clear rate-limit counters so tests never block each other."""
    from user_service.core.rate_limit import limiter

    storage = getattr(limiter, "_storage", None)
    if storage is not None and hasattr(storage, "reset"):
        storage.reset()


# ---------------------------------------------------------------------------
# Per-test session with rollback
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def db_session():
    async with _TestSession() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# HTTP test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture()
async def client(db_session: AsyncSession):
    from user_service.database import get_db
    from user_service.main import app

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience: payload builders and a created parent
# ---------------------------------------------------------------------------

def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def parent_payload(**overrides) -> dict:
    payload = {
        "name": "Hanako",
        "email": unique_email("parent"),
        "role": "Parent",
        "birthDate": "1985-05-15",
        "parentId": None,
    }
    payload.update(overrides)
    return payload


def child_payload(parent_id: str, **overrides) -> dict:
    payload = {
        "name": "Taro",
        "email": unique_email("child"),
        "role": "Child",
        "birthDate": "2015-04-01",
        "parentId": parent_id,
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture()
async def created_parent(client: AsyncClient) -> dict:
    """Create a parent through the API and return its UserDto."""
    resp = await client.post("/api/v1/users", json=parent_payload())
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
