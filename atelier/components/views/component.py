"""
Views component - Derived views over persisted collections.

Shell Layer - loads the collection and favorite set, then delegates
to the pure engine.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from atelier.components.collections.ports import CollectionRepoPort, IdSetRepoPort

from ._impl import derive
from .models import DerivedView, ViewParams, ViewSpec


@dataclass
class DeriveViewInput:
    """Input for computing a derived view."""

    spec: ViewSpec
    search: str = ""
    filters: Mapping[str, str] = field(default_factory=dict)
    sort_by: str | None = None
    archived: bool = False


def run_derive(
    inp: DeriveViewInput,
    repo: CollectionRepoPort,
    favorites_repo: IdSetRepoPort | None = None,
) -> DerivedView:
    """Load a collection and compute its derived view."""
    favorites = favorites_repo.get() if favorites_repo is not None else frozenset()
    params = ViewParams(
        search=inp.search,
        filters=dict(inp.filters),
        sort_by=inp.sort_by,
        favorites=favorites,
        archived=inp.archived,
    )
    return derive(repo.get_all(), inp.spec, params)
