import asyncio
import os
from collections.abc import AsyncGenerator
from uuid import uuid4

# Use a file-backed SQLite database (override in CI with a real PG URL)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["SEED_DATA"] = "false"

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.storage import get_storage
from app.adapters.storage.local import LocalStorageAdapter
from app.cache import get_redis
from app.database import async_session_factory, engine
from app.domain.models import Base, Member
from app.main import app

BASE = "http://test"
PASSWORD = "securepass123"


@pytest.fixture(scope="session", autouse=True)
def setup_db():
    """Create all tables before tests, drop after."""

    async def _create() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        await engine.dispose()

    async def _drop() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()

    asyncio.run(_create())
    yield
    asyncio.run(_drop())


@pytest.fixture
def redis_client():
    """A fresh in-memory Redis per test."""
    return FakeRedis(server=FakeServer(), decode_responses=True)


@pytest.fixture
def storage(tmp_path):
    return LocalStorageAdapter(str(tmp_path / "uploads"))


@pytest.fixture
async def client(redis_client, storage) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_storage] = lambda: storage
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE) as c:
        yield c
    app.dependency_overrides.clear()


async def _register(client: AsyncClient, prefix: str) -> tuple[str, str]:
    username = f"{prefix}_{uuid4().hex[:8]}"
    await client.post(
        "/api/v1/members/join",
        json={"username": username, "email": f"{username}@example.com", "password": PASSWORD},
    )
    resp = await client.post(
        "/api/v1/members/login",
        json={"username": username, "password": PASSWORD},
    )
    return username, resp.json()["data"]["accessToken"]


@pytest.fixture
async def auth_client(client: AsyncClient) -> AsyncClient:
    """Register a member and return a client with auth headers."""
    _, token = await _register(client, "user")
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
def make_member(client: AsyncClient):
    """Factory joining and logging in a fresh member; returns (username, auth headers)."""

    async def _make(prefix: str = "user") -> tuple[str, dict[str, str]]:
        username, token = await _register(client, prefix)
        return username, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """A service-level session; nothing it writes is committed."""
    async with async_session_factory() as s:
        yield s
        await s.rollback()


@pytest.fixture
async def member(session: AsyncSession) -> Member:
    m = Member(
        username=f"svc_{uuid4().hex[:8]}",
        email=f"svc_{uuid4().hex[:8]}@example.com",
        hashed_password="x",
    )
    session.add(m)
    await session.flush()
    return m
