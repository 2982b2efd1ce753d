from __future__ import annotations

import dataclasses

from slotrouter._utils import HASH_SLOTS
from slotrouter.exceptions import TopologyError
from slotrouter.typing import Mapping, NamedTuple


class Route(NamedTuple):
    #: Version of the snapshot the route was resolved against
    version: int
    #: Name of the pool serving the slot, ``None`` if the snapshot
    #: has no reachable owner for it
    pool: str | None


@dataclasses.dataclass(frozen=True)
class NodeRecord:
    """
    Represents a node in the cluster and the pool used to talk to it
    """

    host: str
    port: int
    node_id: str | None = None
    #: Handle of the connection pool for this node. ``None`` when the
    #: node is currently unreachable
    pool: str | None = None

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"


@dataclasses.dataclass(frozen=True)
class ClusterSnapshot:
    """
    Immutable view of the slot ownership of a cluster.

    ``slots[slot]`` is the 1-based position of the owning node in
    :attr:`nodes`, ``0`` marks a slot without owner.
    """

    slots: tuple[int, ...]
    nodes: tuple[NodeRecord, ...]
    version: int = 0

    @classmethod
    def from_slot_ranges(
        cls, ranges: Mapping[tuple[int, int], NodeRecord], version: int = 0
    ) -> ClusterSnapshot:
        """
        Builds a snapshot from a mapping of inclusive ``(start, end)`` slot
        ranges to the primary serving them (the shape of ``CLUSTER SLOTS``)
        """
        nodes: dict[NodeRecord, int] = {}
        slots = [0] * HASH_SLOTS
        for (start, end), node in ranges.items():
            if not (0 <= start <= end < HASH_SLOTS):
                raise TopologyError(f"Invalid slot range {start}-{end}")
            index = nodes.setdefault(node, len(nodes) + 1)
            slots[start : end + 1] = [index] * (end - start + 1)
        return cls(tuple(slots), tuple(nodes), version)

    def node_for_slot(self, slot: int) -> NodeRecord | None:
        if not 0 <= slot < len(self.slots):
            return None
        index = self.slots[slot]
        if not 0 < index <= len(self.nodes):
            return None
        return self.nodes[index - 1]

    def resolve(self, slot: int) -> Route:
        node = self.node_for_slot(slot)
        return Route(self.version, node.pool if node else None)


@dataclasses.dataclass(frozen=True)
class StandaloneSnapshot:
    """
    View of a deployment backed by a single non clustered node. There is
    no slot indirection: every request goes to :attr:`pool`.
    """

    version: int
    pool: str

    def resolve(self, slot: int | None = None) -> Route:
        return Route(self.version, self.pool)


Snapshot = ClusterSnapshot | StandaloneSnapshot
