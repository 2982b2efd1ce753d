from __future__ import annotations

import dataclasses

from anyio import TASK_STATUS_IGNORED, WouldBlock, create_memory_object_stream, create_task_group
from anyio.abc import TaskGroup, TaskStatus

from slotrouter._utils import logger
from slotrouter.exceptions import RouterError, TopologyError
from slotrouter.retry import ExponentialBackoffRetryPolicy, RetryPolicy
from slotrouter.typing import Any, Awaitable, Callable, Iterable, Self

from ._snapshot import Snapshot


class TopologyCache:
    """
    Keeps the current topology snapshot of one or more clusters (keyed by
    connection identity) and refreshes them on demand.

    Refresh requests are queued by :meth:`refresh_mapping` and served by
    :meth:`monitor`, which must be running in a task group (entering the cache
    as an async context manager takes care of that). A request carrying a
    version older than the cached snapshot is dropped, so any number of callers
    noticing the same stale snapshot result in a single reload.
    """

    def __init__(
        self,
        loader: Callable[[str], Awaitable[Snapshot]],
        names: Iterable[str] = (),
        max_pending: int = 64,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """
        :param loader: coroutine function returning a fresh snapshot for the
         given connection identity. The version of the returned snapshot is
         ignored, the cache assigns its own.
        :param names: connection identities to load when entering the cache
        :param max_pending: maximum queued refresh requests. Requests beyond
         that are dropped.
        :param retry_policy: retry policy applied to each :paramref:`loader` call
        """
        self._loader = loader
        self._names = list(names)
        self._snapshots: dict[str, Snapshot] = {}
        self._pending: set[str] = set()
        self._requests = create_memory_object_stream[tuple[str, int]](max_pending)
        self._retry_policy = retry_policy or ExponentialBackoffRetryPolicy(
            (RouterError, OSError), retries=3, initial_delay=0.1, max_delay=2
        )
        self._task_group: TaskGroup | None = None

    async def __aenter__(self) -> Self:
        await self.initialize(*self._names)
        self._task_group = create_task_group()
        await self._task_group.__aenter__()
        await self._task_group.start(self.monitor)
        return self

    async def __aexit__(self, *args: Any) -> None:
        assert self._task_group
        self._task_group.cancel_scope.cancel()
        await self._task_group.__aexit__(*args)
        self._task_group = None

    async def initialize(self, *names: str) -> None:
        for name in names:
            await self.refresh(name)

    def get_slot_cache(self, name: str) -> Snapshot:
        try:
            return self._snapshots[name]
        except KeyError:
            raise TopologyError(f"No topology loaded for {name!r}") from None

    def refresh_mapping(self, name: str, version: int) -> None:
        """
        Requests a reload of the snapshot for :paramref:`name` unless it is
        no longer at :paramref:`version` or a reload is already queued.
        Never blocks.
        """
        if not self._is_current(name, version) or name in self._pending:
            return
        try:
            self._requests[0].send_nowait((name, version))
            self._pending.add(name)
        except WouldBlock:
            logger.debug(f"Dropping refresh request for {name} (version {version})")

    async def monitor(self, task_status: TaskStatus[None] = TASK_STATUS_IGNORED) -> None:
        task_status.started()
        async with self._requests[1].clone() as requests:
            async for name, version in requests:
                try:
                    if self._is_current(name, version):
                        await self.refresh(name)
                except (RouterError, OSError):
                    logger.exception(f"Unable to refresh topology for {name}")
                finally:
                    self._pending.discard(name)

    async def refresh(self, name: str) -> Snapshot:
        """
        Loads and installs a new snapshot for :paramref:`name` with a version
        one higher than the snapshot it replaces.
        """

        async def loader_failed(error: BaseException) -> None:
            logger.warning(f"Loading topology for {name} failed: {error}")

        snapshot = await self._retry_policy.call_with_retries(
            lambda: self._loader(name), failure_hook=loader_failed
        )
        previous = self._snapshots.get(name)
        snapshot = dataclasses.replace(
            snapshot, version=previous.version + 1 if previous else 0
        )
        self._snapshots[name] = snapshot
        logger.debug(f"Installed topology version {snapshot.version} for {name}")
        return snapshot

    def _is_current(self, name: str, version: int) -> bool:
        current = self._snapshots.get(name)
        return current is None or current.version == version
