"""
Persisted Collection Store Interface.

Protocol-based interface for key-addressed JSON persistence.
Implementations: in-memory (tests), local JSON files (cache),
SQLite ``dashboard_data`` table (remote), cached cloud composite.

Invariants:
- load() never raises for a missing key; it returns the caller's default
- A load() issued right after a save() in the same session returns the new value
- No transactional guarantee across keys; each key is an independent unit
"""

from __future__ import annotations

from typing import Any, Protocol


class StoreError(Exception):
    """Base class for store errors."""


class StoreUnavailableError(StoreError):
    """Raised when a backing store cannot be reached or read."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Store unavailable for key {key}: {reason}")


class CollectionStorePort(Protocol):
    """
    Key/value store for JSON-serializable collection values.

    Values are plain JSON data (lists of dicts for entity collections,
    lists of ids for favorite sets).
    """

    def load(self, key: str, default: Any) -> Any:
        """
        Return the last persisted value for key.

        Args:
            key: Store key (e.g. "bi_signals")
            default: Value returned when nothing is stored under key

        Returns:
            Stored value or default
        """
        ...

    def save(self, key: str, value: Any) -> None:
        """
        Persist value under key.

        Local read-after-write must be immediately consistent.
        Remote durability may be eventual.
        """
        ...


class RemoteStorePort(Protocol):
    """
    Remote backing store addressed by (user_id, module_key).

    Raises StoreUnavailableError when the backend cannot be reached.
    """

    def fetch(self, user_id: str, key: str) -> Any | None:
        """Fetch stored value, or None when the row is missing."""
        ...

    def upsert(self, user_id: str, key: str, value: Any) -> None:
        """Insert or replace the stored value."""
        ...
