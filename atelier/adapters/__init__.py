"""
Adapters - concrete implementations of the core ports.
"""

from .clock import FixedClock, SystemClock
from .cloud_store import CachedCloudStore
from .local_store import LocalJsonStore, create_local_store
from .memory_store import InMemoryStore
from .sqlite_store import SQLiteRemoteStore

__all__ = [
    "CachedCloudStore",
    "FixedClock",
    "InMemoryStore",
    "LocalJsonStore",
    "SQLiteRemoteStore",
    "SystemClock",
    "create_local_store",
]
