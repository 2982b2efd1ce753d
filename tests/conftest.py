from __future__ import annotations

import pytest

from slotrouter import (
    ClusterRouter,
    ClusterSnapshot,
    ConnectionPool,
    NodeRecord,
    PoolManager,
)

#: Slot ranges of the two node test cluster
LOW_SLOTS = (0, 8191)
HIGH_SLOTS = (8192, 16383)


class FakeNode:
    """
    Stands in for a store node. Every request is recorded in :attr:`calls`;
    exceptions queued in :attr:`errors` are raised (one per request) before
    the node starts answering normally.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.calls: list[tuple[str, object, dict]] = []
        self.errors: list[BaseException] = []
        self.acknowledgement: list[object] = [b"OK"]

    async def handle(self, kind, payload, options):
        self.calls.append((kind, payload, options))
        if self.errors:
            raise self.errors.pop(0)
        if kind == "execute":
            return (self.name, payload)
        if kind == "pipeline":
            return [(self.name, command) for command in payload]
        return self.acknowledgement


class FakeConnection:
    def __init__(self, node: FakeNode) -> None:
        self.node = node
        self.usable = True
        self.disconnected = False

    def disconnect(self):
        self.disconnected = True
        self.usable = False

    async def execute(self, command, **options):
        return await self.node.handle("execute", command, options)

    async def pipeline(self, commands, **options):
        return await self.node.handle("pipeline", commands, options)

    async def noreply_pipeline(self, commands, **options):
        return await self.node.handle("noreply_pipeline", commands, options)


class FakeTopology:
    """
    Serves a fixed snapshot. Snapshots queued in :attr:`upcoming` replace
    the current one, one per refresh request.
    """

    def __init__(self, snapshot) -> None:
        self.snapshot = snapshot
        self.upcoming: list = []
        self.refreshes: list[tuple[str, int]] = []
        self.reads = 0

    def get_slot_cache(self, name):
        self.reads += 1
        return self.snapshot

    def refresh_mapping(self, name, version):
        self.refreshes.append((name, version))
        if self.upcoming:
            self.snapshot = self.upcoming.pop(0)


def connection_factory(node: FakeNode):
    async def create():
        return FakeConnection(node)

    return create


def two_node_snapshot(version=0, low="low", high="high"):
    return ClusterSnapshot.from_slot_ranges(
        {
            LOW_SLOTS: NodeRecord("10.0.0.1", 7000, node_id="n1", pool=low),
            HIGH_SLOTS: NodeRecord("10.0.0.2", 7000, node_id="n2", pool=high),
        },
        version=version,
    )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def nodes():
    return {"low": FakeNode("low"), "high": FakeNode("high")}


@pytest.fixture
def pools(nodes):
    return PoolManager(
        {
            name: ConnectionPool(connection_factory=connection_factory(node), name=name)
            for name, node in nodes.items()
        }
    )


@pytest.fixture
def topology():
    return FakeTopology(two_node_snapshot())


@pytest.fixture
def sleeps(mocker):
    return mocker.patch("slotrouter.retry.sleep", new_callable=mocker.AsyncMock)


@pytest.fixture
def router(topology, pools, sleeps):
    return ClusterRouter("test", topology, pools, max_retries=5, retry_delay=0.1)
