"""
Local JSON Collection Store.

Implements CollectionStorePort using one JSON file per key.
This is the local cache tier: synchronous, immediately consistent.

Directory structure: {base_path}/{key}.json

Invariants:
- Missing or unreadable files load as the caller's default
- Writes go to a temp file first and are renamed into place
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class LocalJsonStore:
    """Local filesystem implementation of CollectionStorePort."""

    def __init__(self, base_path: str | Path, *, create_dirs: bool = True) -> None:
        """
        Initialize local JSON store.

        Args:
            base_path: Root directory for the key files
            create_dirs: Whether to create the directory if it doesn't exist
        """
        self.base_path = Path(base_path)

        if create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _key_to_path(self, key: str) -> Path:
        """Convert store key to a file path."""
        # Sanitize key to prevent directory traversal
        safe_key = _SAFE_KEY.sub("_", key.replace("..", ""))
        return self.base_path / f"{safe_key}.json"

    def load(self, key: str, default: Any) -> Any:
        path = self._key_to_path(key)
        if not path.exists():
            return default

        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable store file %s: %s", path, e)
            return default

    def save(self, key: str, value: Any) -> None:
        path = self._key_to_path(key)
        tmp_path = path.with_suffix(".json.tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(value, f)

        os.replace(tmp_path, path)

    def exists(self, key: str) -> bool:
        """Check if a value is stored under key."""
        return self._key_to_path(key).exists()

    def delete(self, key: str) -> bool:
        """Remove the file for key. Returns False if it did not exist."""
        path = self._key_to_path(key)
        if not path.exists():
            return False
        path.unlink()
        return True


def create_local_store(
    base_path: str | Path | None = None,
    *,
    default_path: str = "./data/store",
) -> LocalJsonStore:
    """
    Factory function to create LocalJsonStore from config.

    Args:
        base_path: Explicit base path
        default_path: Default path if not configured

    Returns:
        Configured LocalJsonStore instance
    """
    return LocalJsonStore(base_path or default_path)
