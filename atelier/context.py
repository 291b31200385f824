"""
Service context - wires rules, store backend, clock and dashboard pages.

Usage:
    ctx = ServiceContext.from_rules(load_rules_from_env())
    bi = ctx.page("business_intel")
    bi.add_signal({"title": "Quiet luxury", "strength": "82"})
    ctx.flush()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from atelier.adapters.clock import SystemClock
from atelier.adapters.cloud_store import CachedCloudStore
from atelier.adapters.local_store import create_local_store
from atelier.adapters.memory_store import InMemoryStore
from atelier.adapters.sqlite_store import SQLiteRemoteStore
from atelier.components.pages import PAGES, DashboardPage
from atelier.core.ports.store import CollectionStorePort
from atelier.core.ports.time import TimePort
from atelier.rules.models import Rules, StoreRules, default_rules

logger = logging.getLogger(__name__)


def create_store(settings: StoreRules) -> CollectionStorePort:
    """Build the CollectionStorePort selected by the store rules."""
    if settings.backend == "memory":
        return InMemoryStore()

    local = create_local_store(settings.data_dir)
    if settings.backend == "local":
        return local

    remote = None
    if settings.remote_db_path and settings.user_id:
        Path(settings.remote_db_path).parent.mkdir(parents=True, exist_ok=True)
        remote = SQLiteRemoteStore(settings.remote_db_path)
    else:
        logger.info("Cloud store without remote_db_path/user_id; running local-only")

    return CachedCloudStore(
        local,
        remote,
        user_id=settings.user_id,
        auto_flush=settings.auto_flush,
    )


class ServiceContext:
    """One store, one clock, and lazily built dashboard pages over them."""

    def __init__(
        self,
        store: CollectionStorePort,
        time: TimePort | None = None,
        rules: Rules | None = None,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.store = store
        self.time = time or SystemClock()
        self.rules = rules or default_rules()
        self._id_factory = id_factory
        self._pages: dict[str, DashboardPage] = {}

    @classmethod
    def from_rules(cls, rules: Rules, *, time: TimePort | None = None) -> ServiceContext:
        return cls(create_store(rules.store), time, rules)

    def page(self, name: str) -> Any:
        """
        Dashboard page by registry name.

        Raises:
            ValueError: If no page is registered under name
        """
        if name not in self._pages:
            page_cls = PAGES.get(name)
            if page_cls is None:
                raise ValueError(f"Unknown page: {name}")
            self._pages[name] = page_cls(
                self.store, self.time, self.rules, id_factory=self._id_factory
            )
        return self._pages[name]

    def flush(self) -> int:
        """Push pending writes to the remote tier, when there is one."""
        if isinstance(self.store, CachedCloudStore):
            return self.store.flush()
        return 0
