from __future__ import annotations

import pytest
from anyio import create_task_group, fail_after, sleep

from slotrouter import Config, ConnectionPool, PoolManager
from slotrouter.exceptions import ConnectionError, PoolExhaustedError
from tests.conftest import FakeConnection, FakeNode

pytestmark = pytest.mark.anyio


class CountingFactory:
    def __init__(self, node=None, error=None):
        self.node = node or FakeNode("node")
        self.error = error
        self.created: list[FakeConnection] = []

    async def __call__(self):
        if self.error:
            raise self.error
        connection = FakeConnection(self.node)
        self.created.append(connection)
        return connection


class TestConnectionPool:
    async def test_connections_are_reused(self):
        factory = CountingFactory()
        pool = ConnectionPool(connection_factory=factory)
        for _ in range(3):
            async with pool.acquire() as connection:
                await connection.execute(("PING",))
        assert len(factory.created) == 1
        assert pool.checked_out == 0

    async def test_concurrent_borrowers_get_distinct_connections(self):
        factory = CountingFactory()
        pool = ConnectionPool(connection_factory=factory, max_connections=3)
        seen = []

        async def borrow():
            async with pool.acquire() as connection:
                seen.append(connection)
                await sleep(0.01)

        async with create_task_group() as tg:
            for _ in range(3):
                tg.start_soon(borrow)
        assert len(set(map(id, seen))) == 3

    async def test_exhausted(self):
        pool = ConnectionPool(connection_factory=CountingFactory(), max_connections=1, timeout=0.01)
        async with pool.acquire():
            with pytest.raises(PoolExhaustedError):
                async with pool.acquire():
                    pass
        async with pool.acquire():
            pass

    async def test_blocks_until_released(self):
        pool = ConnectionPool(connection_factory=CountingFactory(), max_connections=1)
        order = []

        async def holder():
            async with pool.acquire():
                order.append("held")
                await sleep(0.02)
            order.append("released")

        async with create_task_group() as tg:
            tg.start_soon(holder)
            await sleep(0.005)
            with fail_after(1):
                async with pool.acquire():
                    order.append("acquired")
        assert order == ["held", "released", "acquired"]

    async def test_released_on_error(self):
        pool = ConnectionPool(connection_factory=CountingFactory(), max_connections=1, timeout=0.01)
        with pytest.raises(ZeroDivisionError):
            async with pool.acquire():
                1 / 0
        assert pool.checked_out == 0
        async with pool.acquire():
            pass

    async def test_unusable_connection_is_dropped(self):
        factory = CountingFactory()
        pool = ConnectionPool(connection_factory=factory)
        async with pool.acquire() as connection:
            connection.usable = False
        async with pool.acquire() as connection:
            assert connection is factory.created[1]
        assert len(factory.created) == 2
        assert factory.created[0].disconnected
        assert not factory.created[1].disconnected

    async def test_idle_connection_gone_stale_is_disconnected(self):
        factory = CountingFactory()
        pool = ConnectionPool(connection_factory=factory)
        async with pool.acquire():
            pass
        idle = factory.created[0]
        idle.usable = False
        async with pool.acquire() as connection:
            assert connection is not idle
        assert idle.disconnected
        assert pool.checked_out == 0

    async def test_factory_failure_releases_capacity(self):
        factory = CountingFactory(error=OSError("refused"))
        pool = ConnectionPool(connection_factory=factory, max_connections=1, timeout=0.01)
        for _ in range(2):
            with pytest.raises(OSError):
                async with pool.acquire():
                    pass
        assert pool.checked_out == 0

    async def test_timeout_from_config(self, monkeypatch):
        monkeypatch.setenv("SLOTROUTER_POOL_TIMEOUT", "2.5")
        assert Config.pool_timeout == 2.5
        assert ConnectionPool(connection_factory=CountingFactory()).timeout == 2.5
        assert ConnectionPool(connection_factory=CountingFactory(), timeout=1).timeout == 1

    def test_repr(self):
        pool = ConnectionPool(connection_factory=CountingFactory(), name="10.0.0.1:7000")
        assert repr(pool) == "ConnectionPool<10.0.0.1:7000>"


class TestPoolManager:
    async def test_acquire(self):
        factory = CountingFactory()
        manager = PoolManager({"a": ConnectionPool(connection_factory=factory)})
        async with manager.acquire("a") as connection:
            assert connection is factory.created[0]

    def test_unknown_pool(self):
        with pytest.raises(ConnectionError, match="No connection pool registered for b"):
            PoolManager().acquire("b")

    def test_registration(self):
        manager = PoolManager()
        pool = ConnectionPool(connection_factory=CountingFactory())
        manager.register("a", pool)
        assert "a" in manager
        assert manager.names == ["a"]
        assert manager.get("a") is pool
        assert manager.unregister("a") is pool
        assert manager.unregister("a") is None
        assert "a" not in manager
