from __future__ import annotations

from ._cache import TopologyCache
from ._snapshot import ClusterSnapshot, NodeRecord, Route, Snapshot, StandaloneSnapshot

__all__ = [
    "ClusterSnapshot",
    "NodeRecord",
    "Route",
    "Snapshot",
    "StandaloneSnapshot",
    "TopologyCache",
]
