"""
CollectionRepo - typed entity collections over the key/value store.

Each entity collection is a JSON array stored under one key. The repo
parses it into pydantic records on read and writes the whole array on
every change.

Key behaviors:
- Store failures on load fall back to an empty collection (logged)
- A stored value that is not a list loads as empty (logged)
- Individual records that fail validation are skipped (logged)
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from atelier.core.ports.store import CollectionStorePort, StoreError
from atelier.domain.entities import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


def load_value(store: CollectionStorePort, key: str, default: Any) -> Any:
    """Load key from store, falling back to default on any store failure."""
    try:
        return store.load(key, default)
    except StoreError as e:
        logger.warning("Store load failed for %s, using default: %s", key, e)
        return default


class CollectionRepo(Generic[R]):
    """
    Repository for one entity collection.

    Implements CollectionRepoPort.
    """

    def __init__(self, store: CollectionStorePort, key: str, model: type[R]) -> None:
        self._store = store
        self.key = key
        self.model = model

    def get_all(self) -> list[R]:
        raw = load_value(self._store, self.key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring non-list value stored under %s", self.key)
            return []

        records: list[R] = []
        for item in raw:
            try:
                records.append(self.model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid %s record in %s: %s",
                    self.model.__name__,
                    self.key,
                    e.error_count(),
                )
        return records

    def replace_all(self, records: list[R]) -> None:
        self._store.save(self.key, [r.model_dump(by_alias=True) for r in records])

    def get_by_id(self, record_id: str) -> R | None:
        return next((r for r in self.get_all() if r.id == record_id), None)


class IdSetRepo:
    """
    Persisted set of ids stored as a JSON array (e.g. favorites).

    Implements IdSetRepoPort. Order of first insertion is kept on disk.
    """

    def __init__(self, store: CollectionStorePort, key: str) -> None:
        self._store = store
        self.key = key

    def _load_list(self) -> list[str]:
        raw = load_value(self._store, self.key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring non-list value stored under %s", self.key)
            return []
        return [str(x) for x in raw]

    def get(self) -> frozenset[str]:
        return frozenset(self._load_list())

    def toggle(self, record_id: str) -> bool:
        ids = self._load_list()
        if record_id in ids:
            ids = [x for x in ids if x != record_id]
            member = False
        else:
            ids.append(record_id)
            member = True
        self._store.save(self.key, ids)
        return member

    def discard(self, record_id: str) -> None:
        """Remove record_id if present (used when the record is deleted)."""
        ids = self._load_list()
        if record_id in ids:
            self._store.save(self.key, [x for x in ids if x != record_id])

    def clear(self) -> None:
        self._store.save(self.key, [])
