import itertools
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fakeredis import FakeRedis
from httpx import ASGITransport, AsyncClient

from app import app
from backend import RedisBackend
from dependencies import get_gateway
from services.gateway import RoomGateway


START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when a test tells it to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def fake_redis():
    client = FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        client.flushall()


@pytest.fixture
def backend(fake_redis):
    return RedisBackend(fake_redis)


@pytest.fixture
def clock():
    return FrozenClock(START)


@pytest.fixture
def token_factory():
    # Distinct on every call and reproducible across runs
    counter = itertools.count(1)
    return lambda: f"tok{next(counter):029d}"


@pytest.fixture
def gateway(backend, clock, token_factory):
    return RoomGateway(backend, clock=clock, token_factory=token_factory)


@pytest_asyncio.fixture
async def api_client(gateway):
    app.dependency_overrides[get_gateway] = lambda: gateway
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_gateway, None)
