from __future__ import annotations

from ._basic import ConnectionPool
from ._manager import PoolManager

__all__ = ["ConnectionPool", "PoolManager"]
