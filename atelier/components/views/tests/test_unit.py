"""
Views component unit tests.

Tests for filtering, sorting, favorites ordering and KPI aggregation.
"""

from __future__ import annotations

import pytest

from atelier.adapters.memory_store import InMemoryStore
from atelier.components.collections import CollectionRepo, IdSetRepo
from atelier.components.views import (
    TRAJECTORY_RANK,
    DeriveViewInput,
    SortKey,
    ViewParams,
    ViewSpec,
    aggregate,
    count_by,
    derive,
    group_stats,
    percentage_split,
    round_half_up,
    run_derive,
    sort_records,
    top_value,
)
from atelier.domain.entities import Signal


def make_signal(sid: str, title: str, **kwargs) -> Signal:
    kwargs.setdefault("created_at", "2025-01-01T00:00:00+00:00")
    return Signal(id=sid, title=title, **kwargs)


def kpis(live: list[Signal]) -> dict[str, float]:
    return {"avg_strength": round_half_up(aggregate(live, "strength").average)}


SPEC = ViewSpec(
    name="signals",
    search_fields=("title",),
    filter_fields=("type", "trajectory"),
    sort_keys={
        "strength": SortKey("strength"),
        "trajectory": SortKey("trajectory", "ordinal", TRAJECTORY_RANK),
        "date": SortKey("created_at", "date"),
        "name": SortKey("title", "text"),
    },
    default_sort="strength",
    is_archived=lambda s: s.archived,
    kpis=kpis,
)


@pytest.fixture
def signals() -> list[Signal]:
    return [
        make_signal(
            "a",
            "A",
            strength=80,
            trajectory="Rising",
            type="Market",
            tags=["denim"],
            created_at="2025-01-01T00:00:00+00:00",
        ),
        make_signal(
            "b",
            "B",
            strength=40,
            trajectory="Falling",
            type="Pricing",
            created_at="2025-01-02T00:00:00+00:00",
        ),
        make_signal(
            "cc",
            "Quiet luxury",
            strength=60,
            trajectory="Stable",
            type="Market",
            created_at="2025-01-03T00:00:00+00:00",
        ),
        make_signal("ddd", "Old news", strength=90, archived=True),
    ]


# --- Derive Tests ---


class TestDerive:
    """Test the derived view pipeline."""

    def test_derive_is_pure(self, signals: list[Signal]) -> None:
        """Same records and params give identical output; input untouched."""
        before = [s.model_copy() for s in signals]
        params = ViewParams(search="a", sort_by="strength", favorites=frozenset({"b"}))

        first = derive(signals, SPEC, params)
        second = derive(signals, SPEC, params)

        assert first == second
        assert signals == before

    def test_favorite_moves_ahead_of_stronger_signal(self) -> None:
        """[A(80), B(40)] sorted by strength is [A, B]; favoriting B gives [B, A]."""
        records = [
            make_signal("a", "A", strength=80, trajectory="Rising"),
            make_signal("b", "B", strength=40, trajectory="Falling"),
        ]

        plain = derive(records, SPEC, ViewParams(sort_by="strength"))
        favored = derive(
            records, SPEC, ViewParams(sort_by="strength", favorites=frozenset({"b"}))
        )

        assert [s.title for s in plain.items] == ["A", "B"]
        assert [s.title for s in favored.items] == ["B", "A"]

    @pytest.mark.parametrize("sort_by", ["strength", "trajectory", "date", "name"])
    def test_favorites_precede_for_every_sort_key(
        self, signals: list[Signal], sort_by: str
    ) -> None:
        """Favorites lead regardless of the secondary sort key."""
        favorites = frozenset({"b", "cc"})
        view = derive(signals, SPEC, ViewParams(sort_by=sort_by, favorites=favorites))

        flags = [s.id in favorites for s in view.items]
        assert flags == sorted(flags, reverse=True)

    def test_archived_records_excluded_by_default(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC)

        assert "ddd" not in [s.id for s in view.items]
        assert view.total == 3

    def test_archived_shelf(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC, ViewParams(archived=True))

        assert [s.id for s in view.items] == ["ddd"]

    def test_kpis_ignore_filters_and_search(self, signals: list[Signal]) -> None:
        """KPIs cover the unfiltered live subset."""
        unfiltered = derive(signals, SPEC)
        filtered = derive(signals, SPEC, ViewParams(search="zzz", filters={"type": "Pricing"}))

        assert filtered.items == []
        assert filtered.kpis == unfiltered.kpis
        assert unfiltered.kpis["count"] == 3
        assert unfiltered.kpis["avg_strength"] == 60

    def test_kpis_count_favorites(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC, ViewParams(favorites=frozenset({"a", "ddd"})))

        # ddd is archived and does not count
        assert view.kpis["favorites"] == 1

    def test_empty_collection(self) -> None:
        view = derive([], SPEC)

        assert view.items == []
        assert view.total == 0
        assert view.kpis == {"count": 0, "favorites": 0, "avg_strength": 0}


# --- Filter Tests ---


class TestFilter:
    """Test search and categorical filters."""

    def test_search_is_case_insensitive_substring(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC, ViewParams(search="QUIET"))

        assert [s.title for s in view.items] == ["Quiet luxury"]

    def test_search_matches_tags(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC, ViewParams(search="Den"))

        assert [s.id for s in view.items] == ["a"]

    def test_blank_filter_is_inactive(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC, ViewParams(filters={"type": ""}))

        assert view.total == 3

    def test_adding_filter_never_grows_result(self, signals: list[Signal]) -> None:
        """Filtering is monotonic."""
        loose = derive(signals, SPEC, ViewParams(filters={"type": "Market"}))
        strict = derive(
            signals, SPEC, ViewParams(filters={"type": "Market", "trajectory": "Rising"})
        )

        assert strict.total <= loose.total
        assert {s.id for s in strict.items} <= {s.id for s in loose.items}

    def test_unknown_filter_field_ignored(self, signals: list[Signal]) -> None:
        view = derive(signals, SPEC, ViewParams(filters={"color": "red"}))

        assert view.total == 3


# --- Sort Tests ---


class TestSort:
    """Test sort key kinds."""

    def test_ordinal_sort_uses_rank_table(self, signals: list[Signal]) -> None:
        ordered = sort_records(signals[:3], SPEC, "trajectory")

        assert [s.trajectory for s in ordered] == ["Rising", "Stable", "Falling"]

    def test_text_sort_ascending(self, signals: list[Signal]) -> None:
        ordered = sort_records(signals[:3], SPEC, "name")

        assert [s.title for s in ordered] == ["A", "B", "Quiet luxury"]

    def test_date_sort_newest_first(self, signals: list[Signal]) -> None:
        ordered = sort_records(signals[:3], SPEC, "date")

        assert [s.id for s in ordered] == ["cc", "b", "a"]

    def test_invalid_dates_sort_last(self) -> None:
        records = [
            make_signal("a", "A", created_at="not a date"),
            make_signal("b", "B", created_at="2025-03-01T00:00:00+00:00"),
        ]

        ordered = sort_records(records, SPEC, "date")

        assert [s.id for s in ordered] == ["b", "a"]

    def test_unknown_sort_key_raises(self, signals: list[Signal]) -> None:
        with pytest.raises(ValueError, match="Unknown sort key"):
            sort_records(signals, SPEC, "popularity")


# --- Aggregation Tests ---


class TestAggregation:
    """Test aggregate helpers."""

    def test_empty_aggregate_is_zero(self) -> None:
        """Empty input gives count 0 and average 0, never NaN."""
        result = aggregate([], "strength")

        assert result.count == 0
        assert result.average == 0

    def test_aggregate_average(self, signals: list[Signal]) -> None:
        result = aggregate(signals[:2], "strength")

        assert result.count == 2
        assert result.average == 60

    def test_round_half_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4) == 2

    def test_percentage_split_empty(self) -> None:
        assert percentage_split([], "trajectory", ("Rising", "Falling")) == {
            "Rising": 0,
            "Falling": 0,
        }

    def test_percentage_split(self, signals: list[Signal]) -> None:
        split = percentage_split(signals[:3], "trajectory", ("Rising", "Stable", "Falling"))

        assert split == {"Rising": 33, "Stable": 33, "Falling": 33}

    def test_count_by_lists_zero_groups(self, signals: list[Signal]) -> None:
        counts = count_by(signals[:3], "type", ("Market", "Pricing", "Trend"))

        assert counts == {"Market": 2, "Pricing": 1, "Trend": 0}

    def test_group_stats(self, signals: list[Signal]) -> None:
        stats = group_stats(signals[:3], "type", ("strength",))

        assert stats["Market"].count == 2
        assert stats["Market"].averages["strength"] == 70

    def test_top_value(self, signals: list[Signal]) -> None:
        assert top_value(signals[:3], "type") == "Market"
        assert top_value([], "type") is None


# --- Shell Tests ---


class TestRunDerive:
    """Test the store-backed shell."""

    def test_run_derive_reads_favorites_repo(self) -> None:
        store = InMemoryStore()
        repo = CollectionRepo(store, "bi_signals", Signal)
        favorites = IdSetRepo(store, "bi_favs")
        repo.replace_all(
            [
                make_signal("a", "A", strength=80),
                make_signal("b", "B", strength=40),
            ]
        )
        favorites.toggle("b")

        view = run_derive(DeriveViewInput(spec=SPEC, sort_by="strength"), repo, favorites)

        assert [s.id for s in view.items] == ["b", "a"]
        assert view.kpis["favorites"] == 1
