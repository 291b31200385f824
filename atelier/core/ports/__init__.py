"""
Core port interfaces.

Protocol-based boundaries between the functional core and its adapters.
"""

from .store import (
    CollectionStorePort,
    RemoteStorePort,
    StoreError,
    StoreUnavailableError,
)
from .time import TimePort

__all__ = [
    "CollectionStorePort",
    "RemoteStorePort",
    "StoreError",
    "StoreUnavailableError",
    "TimePort",
]
