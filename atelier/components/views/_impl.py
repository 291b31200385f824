"""
Derived View Engine - filter, sort and aggregate entity collections.

Functional Core - pure functions, no I/O. Safe to call on every render.

Key behaviors:
- Search is a case-insensitive substring match on title/name fields or tags
- Every active categorical filter must equal the record's field
- Favorites sort first; ties keep the secondary ordering
- KPIs cover the unfiltered, non-archived subset; filters never change them
- Empty inputs aggregate to zero, never NaN
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from atelier.domain.entities import Record

from .models import Aggregate, DerivedView, GroupStats, SortKey, ViewParams, ViewSpec

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

TRAJECTORY_RANK = {"Rising": 3, "Stable": 2, "Falling": 1}
SEVERITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}


# --- Numeric helpers ---


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)
    return 0.0


def _timestamp(value: Any) -> float:
    if not value:
        return -math.inf
    try:
        return datetime.fromisoformat(str(value)).timestamp()
    except ValueError:
        return -math.inf


# --- Filtering ---


def matches_search(record: Record, spec: ViewSpec, query: str) -> bool:
    """Case-insensitive substring match on search fields or tags."""
    needle = query.strip().lower()
    if not needle:
        return True

    for field_name in spec.search_fields:
        value = getattr(record, field_name, None)
        if isinstance(value, str) and needle in value.lower():
            return True

    if spec.tag_field:
        tags = getattr(record, spec.tag_field, None) or []
        return any(needle in str(tag).lower() for tag in tags)

    return False


def matches_filters(record: Record, spec: ViewSpec, filters: dict[str, Any]) -> bool:
    """Every active filter must equal the record's field exactly."""
    for field_name, wanted in filters.items():
        if wanted in (None, ""):
            continue
        if field_name not in spec.filter_fields:
            logger.debug("Ignoring unknown filter %s on %s view", field_name, spec.name)
            continue
        if getattr(record, field_name, None) != wanted:
            return False
    return True


def filter_records(records: Iterable[R], spec: ViewSpec, params: ViewParams) -> list[R]:
    filters = dict(params.filters)
    return [
        r
        for r in records
        if matches_search(r, spec, params.search) and matches_filters(r, spec, filters)
    ]


# --- Sorting ---


def is_favorite(record: Record, spec: ViewSpec, favorites: frozenset[str]) -> bool:
    if record.id in favorites:
        return True
    if spec.favorite_field:
        return bool(getattr(record, spec.favorite_field, False))
    return False


def _sort_value(record: Record, key: SortKey) -> Any:
    value = getattr(record, key.field, None)
    if key.kind == "numeric":
        return _number(value)
    if key.kind == "date":
        return _timestamp(value)
    if key.kind == "ordinal":
        return (key.rank or {}).get(str(value), 0)
    return str(value or "").casefold()


def sort_records(
    records: Sequence[R],
    spec: ViewSpec,
    sort_by: str | None = None,
    favorites: frozenset[str] = frozenset(),
) -> list[R]:
    """
    Order records: favorites first, then by the selected sort key.

    Raises:
        ValueError: If sort_by names a key the view does not define
    """
    name = sort_by or spec.default_sort
    ordered = list(records)

    if name:
        key = spec.sort_keys.get(name)
        if key is None:
            raise ValueError(f"Unknown sort key for {spec.name}: {name}")
        ordered.sort(key=lambda r: _sort_value(r, key), reverse=key.kind != "text")

    # Stable: favorites move ahead without disturbing the secondary order
    ordered.sort(key=lambda r: not is_favorite(r, spec, favorites))
    return ordered


# --- Aggregation ---


def live_records(records: Iterable[R], spec: ViewSpec) -> list[R]:
    """Records not in the entity's terminal archive state."""
    if spec.is_archived is None:
        return list(records)
    return [r for r in records if not spec.is_archived(r)]


def archived_records(records: Iterable[R], spec: ViewSpec) -> list[R]:
    if spec.is_archived is None:
        return []
    return [r for r in records if spec.is_archived(r)]


def aggregate(records: Sequence[Record], field_name: str) -> Aggregate:
    """Count and average of a numeric field. Empty input gives (0, 0)."""
    if not records:
        return Aggregate(count=0, average=0)
    total = sum(_number(getattr(r, field_name, 0)) for r in records)
    return Aggregate(count=len(records), average=total / len(records))


def average(records: Sequence[Record], field_name: str) -> int:
    """Rounded average, as shown on KPI cards."""
    return round_half_up(aggregate(records, field_name).average)


def total(records: Iterable[Record], field_name: str) -> float:
    return sum(_number(getattr(r, field_name, 0)) for r in records)


def count_where(records: Iterable[Record], field_name: str, value: Any) -> int:
    return sum(1 for r in records if getattr(r, field_name, None) == value)


def count_by(
    records: Sequence[Record], field_name: str, values: Iterable[str] | None = None
) -> dict[str, int]:
    """Count per value; listed values always appear, even at zero."""
    counts: dict[str, int] = {v: 0 for v in values or ()}
    for r in records:
        value = str(getattr(r, field_name, ""))
        counts[value] = counts.get(value, 0) + 1
    return counts


def percentage_split(
    records: Sequence[Record], field_name: str, values: Iterable[str]
) -> dict[str, int]:
    """Rounded percentage of records per value. Empty input gives zeros."""
    counts = count_by(records, field_name, values)
    n = len(records)
    return {v: round_half_up(c / n * 100) if n else 0 for v, c in counts.items()}


def group_stats(
    records: Sequence[Record],
    group_field: str,
    value_fields: Sequence[str],
    groups: Iterable[str] | None = None,
) -> dict[str, GroupStats]:
    """Per-group count and rounded averages of value_fields."""
    buckets: dict[str, list[Record]] = {g: [] for g in groups or ()}
    for r in records:
        buckets.setdefault(str(getattr(r, group_field, "")), []).append(r)

    return {
        g: GroupStats(
            count=len(items),
            averages={f: average(items, f) for f in value_fields},
        )
        for g, items in buckets.items()
    }


def top_value(records: Sequence[Record], field_name: str) -> str | None:
    """Most frequent value of a field; ties go to the first seen."""
    counts = Counter(str(getattr(r, field_name, "")) for r in records)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def top_n(records: Sequence[R], field_name: str, n: int) -> list[R]:
    """Highest n records by a numeric field (stable among ties)."""
    return sorted(records, key=lambda r: _number(getattr(r, field_name, 0)), reverse=True)[:n]


# --- Derived View ---


def derive(records: Sequence[R], spec: ViewSpec, params: ViewParams | None = None) -> DerivedView[R]:
    """
    Compute the derived view of a collection.

    Pure: same records and params give the same output.
    """
    params = params or ViewParams()
    live = live_records(records, spec)
    base = archived_records(records, spec) if params.archived else live

    items = sort_records(
        filter_records(base, spec, params),
        spec,
        params.sort_by,
        params.favorites,
    )

    kpis: dict[str, float] = {
        "count": len(live),
        "favorites": sum(1 for r in live if is_favorite(r, spec, params.favorites)),
    }
    if spec.kpis is not None:
        kpis.update(spec.kpis(live))

    breakdowns = spec.breakdowns(live) if spec.breakdowns is not None else {}

    return DerivedView(items=items, total=len(items), kpis=kpis, breakdowns=breakdowns)
