"""Redis connection lifecycle tests."""

import pytest

from pmhome import cache


class UnreachableRedis:
    def __init__(self):
        self.closed = False

    async def ping(self):
        raise ConnectionError("redis down")

    async def aclose(self):
        self.closed = True


class HealthyRedis(UnreachableRedis):
    async def ping(self):
        return True


@pytest.mark.asyncio
async def test_failed_ping_closes_client(monkeypatch):
    client = UnreachableRedis()
    monkeypatch.setattr(cache.aioredis, "from_url", lambda *a, **kw: client)

    with pytest.raises(ConnectionError):
        await cache.init_redis()

    assert client.closed
    with pytest.raises(RuntimeError):
        cache.get_redis()


@pytest.mark.asyncio
async def test_init_and_close(monkeypatch):
    client = HealthyRedis()
    monkeypatch.setattr(cache.aioredis, "from_url", lambda *a, **kw: client)

    assert await cache.init_redis() is client
    assert cache.get_redis() is client

    await cache.close_redis()
    assert client.closed
    with pytest.raises(RuntimeError):
        cache.get_redis()
