import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, time, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from alertaseguro.config import settings
from alertaseguro.database import get_db, get_session_factory
from alertaseguro.dependencies import get_push_transport
from alertaseguro.main import app
from alertaseguro.models import Base
from alertaseguro.models.device import Device
from alertaseguro.models.device_owner import DeviceOwner
from alertaseguro.models.schedule import Schedule
from alertaseguro.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ALL_DAYS = [0, 1, 2, 3, 4, 5, 6]

# Wednesday 2026-10-21 12:00 at the default UTC-3 offset
WEDNESDAY_NOON = datetime(2026, 10, 21, 15, 0, tzinfo=timezone.utc)


class FakeRedisPipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list = []

    def zremrangebyscore(self, key: str, low: float, high: float):
        self._ops.append(("zremrangebyscore", key, low, high))

    def zadd(self, key: str, mapping: dict):
        self._ops.append(("zadd", key, mapping))

    def zcard(self, key: str):
        self._ops.append(("zcard", key))

    def expire(self, key: str, seconds: int):
        self._ops.append(("expire", key, seconds))

    async def execute(self) -> list:
        results = []
        for op, key, *args in self._ops:
            zset = self._redis._zsets.setdefault(key, {})
            if op == "zremrangebyscore":
                low, high = args
                stale = [m for m, score in zset.items() if low <= score <= high]
                for member in stale:
                    del zset[member]
                results.append(len(stale))
            elif op == "zadd":
                zset.update(args[0])
                results.append(len(args[0]))
            elif op == "zcard":
                results.append(len(zset))
            else:
                self._redis._ttls[key] = args[0]
                results.append(True)
        self._ops = []
        return results


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._zsets: dict[str, dict[str, float]] = {}
        self._ttls: dict[str, int] = {}

    def pipeline(self) -> FakeRedisPipeline:
        return FakeRedisPipeline(self)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


def make_transport(successful: bool = True) -> MagicMock:
    """Push transport double whose send() returns a configurable result."""
    transport = MagicMock()
    transport.send = AsyncMock(return_value=successful)
    return transport


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make_user(email: str, push_token: str | None = None) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email,
            display_name=email.split("@")[0].title(),
            push_token=push_token,
            created_at=datetime.now(timezone.utc),
            updated_at=datetime.now(timezone.utc),
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def link_device(db_session: AsyncSession):
    """Link a user to a device (creating the device if needed), optionally with schedules."""

    async def _link(
        user: User,
        mac: str = "aa:bb:cc:dd:ee:ff",
        windows: list[tuple[time, time, list[int]]] | None = None,
    ) -> DeviceOwner:
        device = await db_session.scalar(select(Device).where(Device.mac == mac))
        if device is None:
            device_id = uuid.uuid4()
            db_session.add(
                Device(id=device_id, mac=mac, name="Sala", location="casa", device_type="pir")
            )
            await db_session.flush()
        else:
            device_id = device.id

        link = DeviceOwner(id=uuid.uuid4(), device_id=device_id, user_id=user.id)
        db_session.add(link)
        await db_session.flush()

        for start, end, days in windows or []:
            db_session.add(
                Schedule(
                    link_id=link.id,
                    start_time=start,
                    end_time=end,
                    weekdays=days,
                    enabled=True,
                )
            )
        await db_session.commit()
        return link

    return _link


@pytest.fixture
async def test_user(make_user) -> User:
    return await make_user("test@example.com", push_token="fake-apns-token-test-user")


@pytest.fixture
def push_transport() -> MagicMock:
    return make_transport(successful=True)


@pytest.fixture
async def client(
    session_factory, test_user: User, push_transport, monkeypatch
) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # The in-memory engine shares one connection; keep owner sub-pipelines sequential
    monkeypatch.setattr(settings, "PIPELINE_MAX_CONCURRENCY", 1)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_push_transport] = lambda: push_transport
    app.state.redis = FakeRedis()

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": str(test_user.id)},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
