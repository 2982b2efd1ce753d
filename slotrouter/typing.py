from __future__ import annotations

from collections.abc import (
    AsyncGenerator,
    AsyncIterator,
    Awaitable,
    Callable,
    Coroutine,
    Iterable,
    Mapping,
    Sequence,
)
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Final,
    Generic,
    Literal,
    NamedTuple,
    ParamSpec,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from typing_extensions import NotRequired, Self, TypedDict, Unpack

P = ParamSpec("P")
T_co = TypeVar("T_co", covariant=True)
R = TypeVar("R")

#: Represents the acceptable types of a key
KeyT = str | bytes

#: Primitives accepted as command tokens. Token 0 of a command is the verb
ValueT = str | bytes | int | float

#: A single command, i.e. the verb followed by its arguments
Command = tuple[ValueT, ...]

#: Anything the store may reply with
ResponseType = Any


class CallOptions(TypedDict):
    """
    Per call options accepted by :class:`slotrouter.ClusterRouter`. These
    are passed through unchanged to the single node client.
    """

    #: Seconds to wait for the reply from the node
    timeout: NotRequired[float | None]


__all__ = [
    "TYPE_CHECKING",
    "Any",
    "AsyncGenerator",
    "AsyncIterator",
    "Awaitable",
    "CallOptions",
    "Callable",
    "ClassVar",
    "Command",
    "Coroutine",
    "Final",
    "Generic",
    "Iterable",
    "KeyT",
    "Literal",
    "Mapping",
    "NamedTuple",
    "NotRequired",
    "P",
    "Protocol",
    "R",
    "ResponseType",
    "Self",
    "Sequence",
    "T_co",
    "TypedDict",
    "TypeVar",
    "Unpack",
    "ValueT",
    "runtime_checkable",
]
