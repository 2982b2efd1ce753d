from __future__ import annotations

from slotrouter._protocols import PoolManagerP, TopologyCacheP
from slotrouter._utils import logger
from slotrouter.cluster import Route, StandaloneSnapshot
from slotrouter.commands import slot_for_pipeline
from slotrouter.config import Config
from slotrouter.exceptions import AcknowledgementError, NoConnectionError, RouterError
from slotrouter.retry import LinearBackoffRetryPolicy
from slotrouter.typing import (
    Any,
    CallOptions,
    Command,
    Final,
    Iterable,
    ResponseType,
    Sequence,
    Unpack,
)

from ._dispatch import Dispatcher, DispatchResult, Kind, Outcome
from ._result import Error, Ok

#: Final reply of a fire-and-forget pipeline (the reply to ``CLIENT REPLY ON``)
ACKNOWLEDGEMENT: Final = (b"OK", "OK")


class ClusterRouter:
    """
    Routes commands and pipelines of one cluster (identified by
    :paramref:`name`) to the node owning the slot of their keys.

    Every attempt reads a fresh snapshot from :paramref:`topology`. When an
    attempt fails because the snapshot looks stale (no owner for the slot,
    a redirect, a connection failure or a timeout) a refresh is requested and
    the call is retried with a linearly growing delay, up to
    :paramref:`max_retries` attempts in total.

    All the calls return an :class:`Ok` or :class:`Error` value and have an
    ``_or_raise`` counterpart that returns the value or raises the error.
    """

    def __init__(
        self,
        name: str,
        topology: TopologyCacheP,
        pools: PoolManagerP,
        *,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        """
        :param name: connection identity handed to :paramref:`topology`
        :param topology: source of topology snapshots
        :param pools: provider of connections to the nodes
        :param max_retries: attempts before giving up with
         :class:`~slotrouter.exceptions.NoConnectionError`.
         Must be at least ``1``.
         Defaults to :attr:`slotrouter.Config.max_retries`
        :param retry_delay: seconds the wait grows by between attempts.
         Defaults to :attr:`slotrouter.Config.retry_delay`
        """
        self.name = name
        self.topology = topology
        self.max_retries = max_retries if max_retries is not None else Config.max_retries
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        self.retry_policy = LinearBackoffRetryPolicy(
            (),
            retries=self.max_retries - 1,
            step=retry_delay if retry_delay is not None else Config.retry_delay,
        )
        self.dispatcher = Dispatcher(name, topology, pools)

    def __repr__(self) -> str:
        return f"{type(self).__name__}<{self.name}>"

    async def command(
        self, command: Iterable[Any], **options: Unpack[CallOptions]
    ) -> Ok[ResponseType] | Error:
        """
        Runs a single command on the node owning its key
        """
        return await self._execute(Kind.COMMAND, tuple(command), options)

    async def pipeline(
        self, commands: Iterable[Iterable[Any]], **options: Unpack[CallOptions]
    ) -> Ok[list[ResponseType]] | Error:
        """
        Runs :paramref:`commands` in order on the node owning all their keys.
        The replies are in the same order as the commands.
        """
        return await self._execute(Kind.PIPELINE, _commands(commands), options)

    async def noreply_pipeline(
        self, commands: Iterable[Iterable[Any]], **options: Unpack[CallOptions]
    ) -> Ok[None] | Error:
        """
        Runs :paramref:`commands` without collecting their replies. Succeeds
        only if the node acknowledged the pipeline with ``OK``.
        """
        result = await self._execute(Kind.NOREPLY_PIPELINE, _commands(commands), options)
        if isinstance(result, Error):
            return result
        replies = result.value
        if isinstance(replies, Sequence) and replies and replies[-1] in ACKNOWLEDGEMENT:
            return Ok(None)
        return Error(AcknowledgementError(replies))

    async def noreply_command(
        self, command: Iterable[Any], **options: Unpack[CallOptions]
    ) -> Ok[None] | Error:
        return await self.noreply_pipeline([command], **options)

    async def command_or_raise(
        self, command: Iterable[Any], **options: Unpack[CallOptions]
    ) -> ResponseType:
        return (await self.command(command, **options)).unwrap()

    async def pipeline_or_raise(
        self, commands: Iterable[Iterable[Any]], **options: Unpack[CallOptions]
    ) -> list[ResponseType]:
        return (await self.pipeline(commands, **options)).unwrap()

    async def noreply_pipeline_or_raise(
        self, commands: Iterable[Iterable[Any]], **options: Unpack[CallOptions]
    ) -> None:
        (await self.noreply_pipeline(commands, **options)).unwrap()

    async def noreply_command_or_raise(
        self, command: Iterable[Any], **options: Unpack[CallOptions]
    ) -> None:
        (await self.noreply_command(command, **options)).unwrap()

    async def _execute(
        self,
        kind: Kind,
        payload: Command | tuple[Command, ...],
        options: CallOptions,
    ) -> Ok[Any] | Error:
        try:
            result = await self._call_with_retries(kind, payload, options)
        except RouterError as error:
            return Error(error)
        if result.outcome is Outcome.ERROR:
            assert result.error
            return Error(result.error)
        return Ok(result.value)

    async def _call_with_retries(
        self,
        kind: Kind,
        payload: Command | tuple[Command, ...],
        options: CallOptions,
    ) -> DispatchResult:
        for attempt in range(self.max_retries):
            await self.retry_policy.delay(attempt)
            route = self._route(kind, payload)
            result = await self.dispatcher.dispatch(route, kind, payload, options)
            if not result.stale:
                return result
            logger.debug(
                f"Retrying {kind.value} on {self.name} after {result.outcome.value} "
                f"(attempt {attempt + 1} of {self.max_retries})"
            )
        logger.warning(f"Giving up {kind.value} on {self.name} after {self.max_retries} attempts")
        raise NoConnectionError(self.max_retries)

    def _route(self, kind: Kind, payload: Command | tuple[Command, ...]) -> Route:
        snapshot = self.topology.get_slot_cache(self.name)
        if isinstance(snapshot, StandaloneSnapshot):
            return snapshot.resolve()
        commands = [payload] if kind is Kind.COMMAND else payload
        return snapshot.resolve(slot_for_pipeline(commands))  # type: ignore[arg-type]


def _commands(commands: Iterable[Iterable[Any]]) -> tuple[Command, ...]:
    return tuple(tuple(command) for command in commands)
