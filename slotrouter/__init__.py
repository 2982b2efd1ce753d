"""
slotrouter
----------

slotrouter routes commands and pipelines of a sharded key-value store to the
node owning the hash slot of their keys, refreshing its view of the cluster
topology and retrying when that view turns out to be stale.
"""

from __future__ import annotations

import logging

from slotrouter._utils import HASH_SLOTS, hash_slot
from slotrouter.cluster import ClusterSnapshot, NodeRecord, StandaloneSnapshot, TopologyCache
from slotrouter.config import Config
from slotrouter.pool import ConnectionPool, PoolManager
from slotrouter.router import ClusterRouter, Error, Ok

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "HASH_SLOTS",
    "ClusterRouter",
    "ClusterSnapshot",
    "Config",
    "ConnectionPool",
    "Error",
    "NodeRecord",
    "Ok",
    "PoolManager",
    "StandaloneSnapshot",
    "TopologyCache",
    "hash_slot",
]
