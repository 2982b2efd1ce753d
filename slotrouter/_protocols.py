from __future__ import annotations

from contextlib import AbstractAsyncContextManager

from slotrouter.typing import (
    TYPE_CHECKING,
    CallOptions,
    Command,
    Protocol,
    ResponseType,
    Sequence,
    Unpack,
    runtime_checkable,
)

if TYPE_CHECKING:
    from slotrouter.cluster import Snapshot


@runtime_checkable
class ConnectionP(Protocol):
    """
    A connection to a single node, as provided by the underlying protocol
    client. Redirects and other error replies are raised as
    :class:`~slotrouter.exceptions.ResponseError`, loss of connectivity
    as :class:`~slotrouter.exceptions.ConnectionError` (or :exc:`OSError`).
    """

    @property
    def usable(self) -> bool: ...

    def disconnect(self) -> None: ...

    async def execute(self, command: Command, **options: Unpack[CallOptions]) -> ResponseType: ...

    async def pipeline(
        self, commands: Sequence[Command], **options: Unpack[CallOptions]
    ) -> list[ResponseType]: ...

    async def noreply_pipeline(
        self, commands: Sequence[Command], **options: Unpack[CallOptions]
    ) -> list[ResponseType]: ...


class PoolManagerP(Protocol):
    def acquire(self, pool: str) -> AbstractAsyncContextManager[ConnectionP]: ...


class TopologyCacheP(Protocol):
    def get_slot_cache(self, name: str) -> Snapshot: ...

    def refresh_mapping(self, name: str, version: int) -> None: ...
