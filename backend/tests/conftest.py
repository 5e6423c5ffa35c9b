from __future__ import annotations

import asyncio
import random
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hexchess.engine.duel_service import DuelService
from hexchess.engine.duel_store import DuelStore
from hexchess.models.base import Base
from hexchess.models.database import get_db
import hexchess.models.history  # noqa: F401
from hexchess.ws.broadcaster import LocalBroadcaster


@pytest.fixture
async def test_db_engine():
    """Create a test database engine using in-memory SQLite."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db_session_factory(test_db_engine):
    """Create a test async session factory."""
    factory = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return factory


@pytest.fixture
async def test_db_session(test_db_session_factory):
    """Create a test database session."""
    async with test_db_session_factory() as session:
        yield session


class FakePipeline:
    """Queues commands and runs them in order on ``execute``."""

    def __init__(self, redis: FakeRedis):
        self._redis = redis
        self._calls: list = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc) -> None:
        self._calls.clear()

    def __getattr__(self, name: str):
        method = getattr(self._redis, name)

        def queue(*args, **kwargs):
            self._calls.append((method, args, kwargs))
            return self

        return queue

    async def execute(self) -> list:
        results = [await method(*args, **kwargs) for method, args, kwargs in self._calls]
        self._calls.clear()
        return results


class FakePubSub:
    def __init__(self, redis: FakeRedis):
        self._redis = redis
        self._queue: asyncio.Queue = asyncio.Queue()
        self.channels: list[str] = []

    async def subscribe(self, channel: str) -> None:
        self.channels.append(channel)
        self._redis._subscribers.setdefault(channel, []).append(self._queue)
        await self._queue.put({"type": "subscribe", "channel": channel, "data": 1})

    async def unsubscribe(self, channel: str) -> None:
        queues = self._redis._subscribers.get(channel, [])
        if self._queue in queues:
            queues.remove(self._queue)
        self.channels.remove(channel)

    async def listen(self):
        while True:
            yield await self._queue.get()

    async def aclose(self) -> None:
        pass


class FakeRedis:
    """In-memory fake Redis for tests (avoids requiring real Redis)."""

    def __init__(self):
        self._store: dict[str, bytes] = {}
        self._zsets: dict[str, dict[str, float]] = {}
        self._subscribers: dict[str, list[asyncio.Queue]] = {}
        self.published: list[tuple[str, str]] = []

    async def set(self, key: str, value: str | bytes, **kwargs) -> None:
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._store[key] = value

    async def get(self, key: str) -> bytes | None:
        return self._store.get(key)

    async def delete(self, *keys: str) -> int:
        return sum(self._store.pop(key, None) is not None for key in keys)

    async def zadd(self, name: str, mapping: dict[str, float]) -> int:
        zset = self._zsets.setdefault(name, {})
        added = sum(member not in zset for member in mapping)
        zset.update(mapping)
        return added

    async def zrem(self, name: str, *members: str) -> int:
        zset = self._zsets.get(name, {})
        return sum(zset.pop(member, None) is not None for member in members)

    async def zrangebyscore(
        self, name: str, min, max, start: int | None = None, num: int | None = None,
        withscores: bool = False,
    ) -> list:
        low, high = float(min), float(max)
        rows = sorted(
            ((member, score) for member, score in self._zsets.get(name, {}).items()
             if low <= score <= high),
            key=lambda row: (row[1], row[0]),
        )
        if start is not None and num is not None:
            rows = rows[start:start + num]
        encoded = [(member.encode("utf-8"), score) for member, score in rows]
        if withscores:
            return encoded
        return [member for member, _ in encoded]

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        queues = self._subscribers.get(channel, [])
        for queue in queues:
            await queue.put({"type": "message", "channel": channel, "data": message.encode("utf-8")})
        return len(queues)

    def pubsub(self) -> FakePubSub:
        return FakePubSub(self)

    async def ping(self) -> bool:
        return True

    async def flushdb(self) -> None:
        self._store.clear()
        self._zsets.clear()

    async def aclose(self) -> None:
        pass


class FakeClock:
    """Settable wall clock for store expiry tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWebSocket:
    """Records JSON payloads sent to it; can be told to fail."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest.fixture
def test_redis():
    """Create a fake Redis for tests."""
    return FakeRedis()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def duel_store(test_redis, clock):
    return DuelStore(test_redis, max_age=3600, clock=clock)


@pytest.fixture
def broadcaster():
    return LocalBroadcaster()


@pytest.fixture
def duel_service(duel_store, broadcaster, test_db_session_factory):
    return DuelService(
        store=duel_store,
        broadcaster=broadcaster,
        db_session_factory=test_db_session_factory,
        rng=random.Random(7),
    )


@pytest.fixture
async def app(test_db_engine, test_db_session_factory, test_redis, duel_store, broadcaster, duel_service):
    """Create a test FastAPI application with test dependencies."""
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from hexchess.api.auth import router as auth_router
    from hexchess.api.duels import router as duels_router
    from hexchess.api.health import router as health_router
    from hexchess.api.history import router as history_router
    from hexchess.ws.handler import router as ws_router

    # Create app without real lifespan (we set up state manually)
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(title="hexchess-test", lifespan=test_lifespan)

    test_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    test_app.include_router(auth_router, prefix="/api/v1")
    test_app.include_router(duels_router, prefix="/api/v1")
    test_app.include_router(history_router, prefix="/api/v1")
    test_app.include_router(ws_router)
    test_app.include_router(health_router)

    async def override_get_db():
        async with test_db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app.dependency_overrides[get_db] = override_get_db

    test_app.state.redis = test_redis
    test_app.state.db_session_factory = test_db_session_factory
    test_app.state.broadcaster = broadcaster
    test_app.state.duel_service = duel_service

    yield test_app

    test_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    """Create a test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
