"""
Views component - Data models.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from atelier.domain.entities import Record

R = TypeVar("R", bound=Record)

SortKind = Literal["numeric", "date", "ordinal", "text"]

KpiFn = Callable[[list[Any]], dict[str, float]]
BreakdownFn = Callable[[list[Any]], dict[str, dict[str, Any]]]


@dataclass(frozen=True)
class SortKey:
    """
    How to order records by one field.

    numeric, date and ordinal sort descending; text sorts ascending.
    Ordinal values missing from rank sort as 0.
    """

    field: str
    kind: SortKind = "numeric"
    rank: Mapping[str, int] | None = None


@dataclass(frozen=True)
class ViewSpec:
    """Per-entity description of how a collection is searched, sorted and summarized."""

    name: str
    search_fields: tuple[str, ...]
    tag_field: str | None = "tags"
    filter_fields: tuple[str, ...] = ()
    sort_keys: Mapping[str, SortKey] = field(default_factory=dict)
    default_sort: str | None = None
    is_archived: Callable[[Any], bool] | None = None
    favorite_field: str | None = None
    kpis: KpiFn | None = None
    breakdowns: BreakdownFn | None = None


@dataclass(frozen=True)
class ViewParams:
    """User-chosen view parameters. Empty filter values are inactive."""

    search: str = ""
    filters: Mapping[str, str] = field(default_factory=dict)
    sort_by: str | None = None
    favorites: frozenset[str] = frozenset()
    archived: bool = False


@dataclass(frozen=True)
class Aggregate:
    """Count and mean of one numeric field."""

    count: int
    average: float


@dataclass(frozen=True)
class GroupStats:
    """Count and per-field means for one group."""

    count: int
    averages: dict[str, int]


@dataclass
class DerivedView(Generic[R]):
    """Filtered, sorted display list plus summary KPIs over the live subset."""

    items: list[R]
    total: int
    kpis: dict[str, float]
    breakdowns: dict[str, dict[str, Any]] = field(default_factory=dict)
