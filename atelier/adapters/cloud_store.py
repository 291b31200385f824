"""
Cached Cloud Store.

Composes a local CollectionStorePort (cache) with an optional remote
store addressed by user id. Mirrors the dashboard persistence hook:

- load: non-null remote value wins (and refreshes the cache), then the
  local cache, then the caller's default
- save: written to the cache synchronously, key marked dirty
- flush: pushes dirty keys to the remote; failures are logged and the
  key stays dirty for the next flush

Without a remote (signed-out session) the store is purely local.
"""

from __future__ import annotations

import logging
from typing import Any

from atelier.core.ports.store import CollectionStorePort, RemoteStorePort, StoreError

logger = logging.getLogger(__name__)


class CachedCloudStore:
    """Local-first CollectionStorePort with eventual remote sync."""

    def __init__(
        self,
        local: CollectionStorePort,
        remote: RemoteStorePort | None = None,
        *,
        user_id: str | None = None,
        auto_flush: bool = False,
    ) -> None:
        """
        Initialize cached store.

        Args:
            local: Cache tier (always written)
            remote: Remote tier, or None for local-only sessions
            user_id: Owner of the remote rows; remote sync is off without it
            auto_flush: Push to the remote on every save instead of on flush()
        """
        self._local = local
        self._remote = remote if user_id else None
        self._user_id = user_id
        self._auto_flush = auto_flush
        self._dirty: dict[str, Any] = {}

    @property
    def pending_keys(self) -> list[str]:
        """Keys saved locally but not yet synced."""
        return sorted(self._dirty)

    def load(self, key: str, default: Any) -> Any:
        if key in self._dirty:
            # Unsynced local write is newer than anything remote
            return self._local.load(key, default)

        if self._remote is not None and self._user_id is not None:
            try:
                remote_value = self._remote.fetch(self._user_id, key)
            except StoreError as e:
                logger.warning("Remote load failed for %s, using local cache: %s", key, e)
            else:
                if remote_value is not None:
                    self._local.save(key, remote_value)
                    return remote_value

        return self._local.load(key, default)

    def save(self, key: str, value: Any) -> None:
        self._local.save(key, value)

        if self._remote is None:
            return

        self._dirty[key] = value
        if self._auto_flush:
            self.flush()

    def flush(self) -> int:
        """
        Push dirty keys to the remote store.

        Returns:
            Number of keys synced successfully
        """
        if self._remote is None or self._user_id is None:
            return 0

        synced = 0
        for key in list(self._dirty):
            try:
                self._remote.upsert(self._user_id, key, self._dirty[key])
            except StoreError as e:
                logger.warning("Remote sync failed for %s: %s", key, e)
                continue
            del self._dirty[key]
            synced += 1

        if synced:
            logger.debug("Synced %d key(s) to remote store", synced)
        return synced
