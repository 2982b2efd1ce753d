from __future__ import annotations

from collections import deque
from contextlib import asynccontextmanager

from anyio import Semaphore, fail_after

from slotrouter._protocols import ConnectionP
from slotrouter.config import Config
from slotrouter.exceptions import PoolExhaustedError
from slotrouter.typing import AsyncGenerator, Awaitable, Callable


class ConnectionPool:
    def __init__(
        self,
        *,
        connection_factory: Callable[[], Awaitable[ConnectionP]],
        max_connections: int | None = None,
        timeout: float | None = None,
        name: str | None = None,
    ) -> None:
        """
        Blocking connection pool for a single node

        :param connection_factory: coroutine function creating a new connection
         to the node
        :param max_connections: Maximum connections to grow the pool.
         Once the limit is reached callers will block to wait for a connection
         to be returned to the pool.
        :param timeout: Number of seconds to block when trying to obtain a connection.
         Falls back to :attr:`slotrouter.Config.pool_timeout`.
        :param name: used for representation only
        """
        self.connection_factory = connection_factory
        self.max_connections = max_connections or 64
        self.timeout = timeout if timeout is not None else Config.pool_timeout
        self.name = name
        self._idle: deque[ConnectionP] = deque()
        self._available = Semaphore(self.max_connections)

    def __repr__(self) -> str:
        return f"{type(self).__name__}<{self.name}>"

    @property
    def checked_out(self) -> int:
        return self.max_connections - self._available.value

    async def get_connection(self) -> ConnectionP:
        """
        Gets an idle connection from the pool or creates a new one. The
        connection must be handed back with :meth:`release`.

        :raises PoolExhaustedError: if no connection became available within
         :attr:`timeout` seconds
        """
        try:
            with fail_after(self.timeout):
                await self._available.acquire()
        except TimeoutError:
            raise PoolExhaustedError(
                f"No connection available in {self!r} after {self.timeout} seconds"
            ) from None
        try:
            # most recently used first
            while self._idle:
                connection = self._idle.pop()
                if connection.usable:
                    return connection
                connection.disconnect()
            return await self.connection_factory()
        except BaseException:
            self._available.release()
            raise

    def release(self, connection: ConnectionP) -> None:
        """
        Returns a connection to the pool, disconnecting and dropping it if it
        is no longer usable
        """
        if connection.usable:
            self._idle.append(connection)
        else:
            connection.disconnect()
        self._available.release()

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[ConnectionP]:
        """
        Checks out a connection for the duration of the context and returns it
        to the pool on every exit path.
        """
        connection = await self.get_connection()
        try:
            yield connection
        finally:
            self.release(connection)
