"""
Collections component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol, TypeVar

from atelier.domain.entities import Record

R = TypeVar("R", bound=Record)


class CollectionRepoPort(Protocol[R]):
    """Repository interface for one entity collection under one store key."""

    key: str

    def get_all(self) -> list[R]:
        """Load every record, in stored order."""
        ...

    def replace_all(self, records: list[R]) -> None:
        """Write the whole collection back."""
        ...


class IdSetRepoPort(Protocol):
    """Repository interface for a persisted set of record ids (favorites)."""

    key: str

    def get(self) -> frozenset[str]:
        """Load the id set."""
        ...

    def toggle(self, record_id: str) -> bool:
        """Flip membership of record_id. Returns the new membership."""
        ...

    def discard(self, record_id: str) -> None:
        """Remove record_id if present."""
        ...
