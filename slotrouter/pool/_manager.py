from __future__ import annotations

from contextlib import AbstractAsyncContextManager

from slotrouter._protocols import ConnectionP
from slotrouter._utils import logger
from slotrouter.exceptions import ConnectionError
from slotrouter.typing import Mapping

from ._basic import ConnectionPool


class PoolManager:
    """
    Registry of connection pools keyed by the pool handle that
    topology snapshots refer to nodes with
    """

    def __init__(self, pools: Mapping[str, ConnectionPool] | None = None) -> None:
        self._pools: dict[str, ConnectionPool] = dict(pools or {})

    def __contains__(self, name: str) -> bool:
        return name in self._pools

    @property
    def names(self) -> list[str]:
        return list(self._pools)

    def register(self, name: str, pool: ConnectionPool) -> None:
        if name in self._pools:
            logger.debug(f"Replacing connection pool {name}")
        self._pools[name] = pool

    def unregister(self, name: str) -> ConnectionPool | None:
        return self._pools.pop(name, None)

    def get(self, name: str) -> ConnectionPool:
        try:
            return self._pools[name]
        except KeyError:
            raise ConnectionError(f"No connection pool registered for {name}") from None

    def acquire(self, pool: str) -> AbstractAsyncContextManager[ConnectionP]:
        return self.get(pool).acquire()
