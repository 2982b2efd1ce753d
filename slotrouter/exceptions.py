from __future__ import annotations

from slotrouter.typing import ClassVar, ResponseType, Sequence, ValueT


class RouterError(Exception):
    """
    Base exception from which all other exceptions in slotrouter
    derive from.
    """

    #: Short, stable code describing the failure
    reason: ClassVar[str] = "error"


class InvalidClusterCommandError(RouterError):
    """
    Raised when a command is addressed to a single node by nature
    (for example ``INFO`` or ``CONFIG``) and can therefore not be
    routed transparently in cluster mode
    """

    reason = "invalid_cluster_command"

    def __init__(self, command: ValueT) -> None:
        self.command = command
        super().__init__(f"{command!r} can not be routed in cluster mode")


class CrossSlotError(RouterError):
    """Raised when keys in a command or pipeline don't hash to the same slot"""

    reason = "key_must_same_slot"

    def __init__(
        self,
        slots: Sequence[int | None] = (),
        keys: Sequence[ValueT] | None = None,
    ) -> None:
        super().__init__("Keys in request don't hash to the same slot")
        self.slots = tuple(slots)
        self.keys = tuple(keys) if keys is not None else None


class NoConnectionError(RouterError):
    """
    Raised when a call could not be delivered to the node owning
    its slot within the retry budget
    """

    reason = "no_connection"

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"No connection to the owning node after {attempts} attempts")


class AcknowledgementError(RouterError):
    """
    Raised when a fire-and-forget pipeline does not end with the
    expected acknowledgement
    """

    reason = "unexpected_reply"

    def __init__(self, replies: ResponseType) -> None:
        self.replies = replies
        super().__init__(f"Expected an OK acknowledgement, got {replies!r}")


class DataError(RouterError):
    reason = "invalid_data"


class TopologyError(RouterError):
    """
    Raised when the topology cache has no usable snapshot for
    a connection identity
    """

    reason = "topology_unavailable"


class ConnectionError(RouterError):
    reason = "connection_error"


class TimeoutError(RouterError):
    reason = "timeout"


class PoolExhaustedError(TimeoutError):
    """
    Raised when no connection could be checked out of a pool within
    the pool's timeout
    """

    reason = "pool_exhausted"


class ResponseError(RouterError):
    """
    Error reply from the store. Instances that are not redirects are
    handed back to the caller untouched.
    """

    reason = "response_error"


class AskError(ResponseError):
    """
    ``ASK`` redirect received from a node that is migrating the slot
    to another node.
    The message has the form ``<slot> <host>:<port>``
    """

    reason = "ask"

    def __init__(self, resp: str) -> None:
        self.args = (resp,)
        self.message = resp
        slot_id, new_node = resp.split(" ")
        host, port = new_node.rsplit(":", 1)
        self.slot_id = int(slot_id)
        self.node_addr = self.host, self.port = host, int(port)


class MovedError(AskError):
    """
    ``MOVED`` redirect received from a node that no longer serves
    the slot of the addressed key
    """

    reason = "moved"
