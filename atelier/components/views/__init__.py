"""
Views component - Derived View Engine.

Filters, sorts and aggregates entity collections into display lists
and summary KPIs.
"""

from ._impl import (
    SEVERITY_RANK,
    TRAJECTORY_RANK,
    aggregate,
    archived_records,
    average,
    count_by,
    count_where,
    derive,
    filter_records,
    group_stats,
    is_favorite,
    live_records,
    matches_filters,
    matches_search,
    percentage_split,
    round_half_up,
    sort_records,
    top_n,
    top_value,
    total,
)
from .component import DeriveViewInput, run_derive
from .models import Aggregate, DerivedView, GroupStats, SortKey, ViewParams, ViewSpec

__all__ = [
    # Entry points
    "derive",
    "run_derive",
    # Input models
    "DeriveViewInput",
    "SortKey",
    "ViewParams",
    "ViewSpec",
    # Output models
    "Aggregate",
    "DerivedView",
    "GroupStats",
    # Rank tables
    "SEVERITY_RANK",
    "TRAJECTORY_RANK",
    # Pure helpers
    "aggregate",
    "archived_records",
    "average",
    "count_by",
    "count_where",
    "filter_records",
    "group_stats",
    "is_favorite",
    "live_records",
    "matches_filters",
    "matches_search",
    "percentage_split",
    "round_half_up",
    "sort_records",
    "top_n",
    "top_value",
    "total",
]
