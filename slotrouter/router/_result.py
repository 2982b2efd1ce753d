from __future__ import annotations

import dataclasses

from slotrouter.exceptions import RouterError
from slotrouter.typing import Any, Generic, Literal, R


@dataclasses.dataclass(frozen=True)
class Ok(Generic[R]):
    """Successful outcome of a routed call"""

    value: R
    ok: Literal[True] = dataclasses.field(default=True, init=False, repr=False)

    def unwrap(self) -> R:
        return self.value


@dataclasses.dataclass(frozen=True)
class Error:
    """
    Failed outcome of a routed call. :attr:`error` is either one of the
    router's own errors or an error reply of the store, untouched.
    """

    error: RouterError
    ok: Literal[False] = dataclasses.field(default=False, init=False, repr=False)

    @property
    def reason(self) -> str:
        return self.error.reason

    def unwrap(self) -> Any:
        raise self.error
