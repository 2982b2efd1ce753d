from __future__ import annotations

from slotrouter._utils import b
from slotrouter.exceptions import DataError, InvalidClusterCommandError
from slotrouter.typing import Callable, ClassVar, Command, Iterable, ValueT


def _script_keys(args: Command) -> tuple[ValueT, ...]:
    # <verb> <script|sha|function> <numkeys> key [key ...] arg [arg ...]
    if len(args) < 3:
        return ()
    try:
        numkeys = int(args[2])
    except (TypeError, ValueError):
        raise DataError(f"Invalid number of keys {args[2]!r} for {args[0]!r}") from None
    if numkeys < 0:
        raise DataError(f"Number of keys can't be negative for {args[0]!r}")
    return args[3 : 3 + numkeys]


class KeySpec:
    #: Commands that are scoped to the node they are sent to and are
    #: unsafe to route transparently
    NODE_SCOPED: ClassVar[frozenset[bytes]] = frozenset(
        {b"INFO", b"CONFIG", b"SHUTDOWN", b"SLAVEOF", b"REPLICAOF"}
    )

    #: Commands whose keys are not (only) their first argument
    KEYS: ClassVar[dict[bytes, Callable[[Command], tuple[ValueT, ...]]]] = {
        b"EVAL": _script_keys,
        b"EVALSHA": _script_keys,
        b"EVAL_RO": _script_keys,
        b"EVALSHA_RO": _script_keys,
        b"FCALL": _script_keys,
        b"FCALL_RO": _script_keys,
        b"SCRIPT": lambda args: (),
    }

    @classmethod
    def extract_keys(cls, command: Command) -> tuple[ValueT, ...]:
        """
        Returns the keys addressed by ``command``. Commands that don't
        address a key return an empty tuple.

        :raises InvalidClusterCommandError: if the command can not be used
         in cluster mode
        """
        if not command:
            return ()

        verb = b(command[0]).upper()

        if verb in cls.NODE_SCOPED:
            raise InvalidClusterCommandError(command[0])
        if verb in cls.KEYS:
            return cls.KEYS[verb](command)
        return command[1:2]

    @classmethod
    def extract_pipeline_keys(cls, commands: Iterable[Command]) -> tuple[ValueT, ...]:
        """
        Flattens the keys of all ``commands`` preserving their order
        """
        return tuple(key for command in commands for key in cls.extract_keys(command))
