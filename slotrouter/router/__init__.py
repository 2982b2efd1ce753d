from __future__ import annotations

from ._cluster import ACKNOWLEDGEMENT, ClusterRouter
from ._dispatch import Dispatcher, DispatchResult, Kind, Outcome
from ._result import Error, Ok

__all__ = [
    "ACKNOWLEDGEMENT",
    "ClusterRouter",
    "Dispatcher",
    "DispatchResult",
    "Error",
    "Kind",
    "Ok",
    "Outcome",
]
