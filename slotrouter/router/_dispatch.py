from __future__ import annotations

import builtins
import dataclasses
import enum

from anyio import BrokenResourceError, ClosedResourceError, EndOfStream

from slotrouter._protocols import ConnectionP, PoolManagerP, TopologyCacheP
from slotrouter._utils import logger
from slotrouter.cluster import Route
from slotrouter.exceptions import (
    AskError,
    ConnectionError,
    ResponseError,
    RouterError,
    TimeoutError,
)
from slotrouter.typing import Any, CallOptions, Command, ResponseType, Sequence


class Kind(enum.Enum):
    COMMAND = "command"
    PIPELINE = "pipeline"
    NOREPLY_PIPELINE = "noreply_pipeline"


class Outcome(enum.Enum):
    #: The node replied
    OK = "ok"
    #: The node replied with an error that is not a redirect
    ERROR = "error"
    #: The snapshot has no reachable owner for the slot
    STALE_ROUTE = "stale_route"
    #: The node redirected the request elsewhere
    REDIRECT = "redirect"
    #: The connection to the node failed or the exchange ended abnormally
    CONNECTION_FAILED = "connection_failed"
    #: No connection could be checked out in time or the request timed out
    POOL_EXHAUSTED = "pool_exhausted"


STALE_OUTCOMES = frozenset(
    {
        Outcome.STALE_ROUTE,
        Outcome.REDIRECT,
        Outcome.CONNECTION_FAILED,
        Outcome.POOL_EXHAUSTED,
    }
)

_TIMEOUT_ERRORS = (TimeoutError, builtins.TimeoutError)
_CONNECTIVITY_ERRORS = (
    ConnectionError,
    OSError,
    BrokenResourceError,
    ClosedResourceError,
    EndOfStream,
)
_REDIRECT_PREFIXES = ("MOVED", "ASK")


@dataclasses.dataclass(frozen=True)
class DispatchResult:
    outcome: Outcome
    value: ResponseType = None
    error: RouterError | None = None

    @property
    def stale(self) -> bool:
        """
        Whether the attempt failed in a way that suggests the topology
        snapshot it was routed with is out of date
        """
        return self.outcome in STALE_OUTCOMES


def is_redirect(error: ResponseError) -> bool:
    return isinstance(error, AskError) or str(error).startswith(_REDIRECT_PREFIXES)


class Dispatcher:
    """
    Sends one command or pipeline to the pool a :class:`~slotrouter.cluster.Route`
    points at and classifies what happened.
    """

    def __init__(self, name: str, topology: TopologyCacheP, pools: PoolManagerP) -> None:
        self.name = name
        self.topology = topology
        self.pools = pools

    async def dispatch(
        self,
        route: Route,
        kind: Kind,
        payload: Command | Sequence[Command],
        options: CallOptions,
    ) -> DispatchResult:
        if route.pool is None:
            return self._stale(route, Outcome.STALE_ROUTE)
        try:
            async with self.pools.acquire(route.pool) as connection:
                value = await self._send(connection, kind, payload, options)
        except ResponseError as error:
            if is_redirect(error):
                return self._stale(route, Outcome.REDIRECT, error)
            return DispatchResult(Outcome.ERROR, error=error)
        except _TIMEOUT_ERRORS as error:
            return self._stale(route, Outcome.POOL_EXHAUSTED, error)
        except _CONNECTIVITY_ERRORS as error:
            return self._stale(route, Outcome.CONNECTION_FAILED, error)
        except RouterError as error:
            return DispatchResult(Outcome.ERROR, error=error)
        except Exception as error:
            logger.warning(f"Unexpected error talking to {route.pool}: {error!r}")
            return self._stale(route, Outcome.CONNECTION_FAILED, error)
        return DispatchResult(Outcome.OK, value)

    async def _send(
        self,
        connection: ConnectionP,
        kind: Kind,
        payload: Any,
        options: CallOptions,
    ) -> ResponseType:
        if kind is Kind.COMMAND:
            return await connection.execute(payload, **options)
        elif kind is Kind.PIPELINE:
            return await connection.pipeline(payload, **options)
        return await connection.noreply_pipeline(payload, **options)

    def _stale(
        self, route: Route, outcome: Outcome, error: BaseException | None = None
    ) -> DispatchResult:
        logger.debug(
            f"Requesting topology refresh of {self.name} (version {route.version}): "
            f"{outcome.value} {error or ''}".rstrip()
        )
        self.topology.refresh_mapping(self.name, route.version)
        return DispatchResult(outcome)
