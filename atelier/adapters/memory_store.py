"""
In-memory Collection Store.

Dict-backed CollectionStorePort for tests and ephemeral sessions.
Values round-trip through JSON so callers never alias stored state
and non-serializable values fail at save time, as they would on disk.
"""

from __future__ import annotations

import json
from typing import Any


class InMemoryStore:
    """In-memory implementation of CollectionStorePort."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str, default: Any) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def clear(self) -> None:
        self._data.clear()
