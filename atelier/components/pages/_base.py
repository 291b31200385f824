"""
DashboardPage - one dashboard's collections wired to a store.

A page declares its collections (store key, entity rules, view spec,
CSV columns), its favorite set and its cascade table. The base class
builds a repository and a mutation service per collection and offers
the shared view/export operations.

Cascades are an explicit (parent, child, foreign key) table per page,
never inferred from field names.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from atelier.components.collections import CollectionRepo, IdSetRepo
from atelier.components.export import (
    PLACEHOLDER,
    Column,
    CsvExportInput,
    ExportOutput,
    JsonExportInput,
    TextExportInput,
    TextReport,
    run_csv,
    run_json,
    run_text,
)
from atelier.components.mutations import CascadeRule, EntityDef, MutationService
from atelier.components.views import (
    DerivedView,
    DeriveViewInput,
    ViewSpec,
    live_records,
    run_derive,
)
from atelier.core.ports.store import CollectionStorePort
from atelier.core.ports.time import TimePort
from atelier.rules.models import Rules, default_rules


@dataclass(frozen=True)
class CollectionDef:
    """One persisted collection on a page."""

    attr: str
    key: str
    entity: EntityDef[Any]
    view: ViewSpec | None = None
    columns: tuple[Column, ...] = ()
    export_prefix: str = ""
    export_archived: bool = False


@dataclass(frozen=True)
class Cascade:
    """Deleting a parent record removes child records pointing at it."""

    parent: str
    child: str
    foreign_key: str


class DashboardPage(ABC):
    """Base class for dashboard pages."""

    prefix: ClassVar[str]
    title: ClassVar[str]
    slug: ClassVar[str]
    collections: ClassVar[tuple[CollectionDef, ...]]
    cascades: ClassVar[tuple[Cascade, ...]] = ()
    favorites_key: ClassVar[str | None] = None
    favorites_of: ClassVar[str | None] = None

    def __init__(
        self,
        store: CollectionStorePort,
        time: TimePort,
        rules: Rules | None = None,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.rules = rules or default_rules()
        self.time = time
        self._defs = {d.attr: d for d in self.collections}
        self.repos: dict[str, CollectionRepo[Any]] = {
            d.attr: CollectionRepo(store, d.key, d.entity.model) for d in self.collections
        }
        self.favorites = IdSetRepo(store, self.favorites_key) if self.favorites_key else None

        self.services: dict[str, MutationService[Any]] = {}
        for d in self.collections:
            cascade_rules = [
                CascadeRule(child=self.repos[c.child], foreign_key=c.foreign_key)
                for c in self.cascades
                if c.parent == d.attr
            ]
            self.services[d.attr] = MutationService(
                d.entity,
                self.repos[d.attr],
                time,
                cascades=cascade_rules,
                favorites=self.favorites if d.attr == self.favorites_of else None,
                settings=self.rules.mutations,
                id_factory=id_factory,
            )

    # --- Lookup ---

    def definition(self, attr: str) -> CollectionDef:
        try:
            return self._defs[attr]
        except KeyError:
            raise ValueError(f"{self.title} has no collection '{attr}'") from None

    def service(self, attr: str) -> MutationService[Any]:
        self.definition(attr)
        return self.services[attr]

    def records(self, attr: str) -> list[Any]:
        self.definition(attr)
        return self.repos[attr].get_all()

    def live(self, attr: str) -> list[Any]:
        """Records of attr outside the terminal archive state."""
        d = self.definition(attr)
        records = self.repos[attr].get_all()
        return live_records(records, d.view) if d.view is not None else records

    def resolve_title(self, attr: str, record_id: str) -> str:
        """Title of a referenced record, or a dash for dangling references."""
        d = self.definition(attr)
        record = self.repos[attr].get_by_id(record_id) if record_id else None
        if record is None:
            return PLACEHOLDER
        return str(getattr(record, d.entity.title_field))

    # --- Views ---

    def view(
        self,
        attr: str,
        *,
        search: str = "",
        filters: Mapping[str, str] | None = None,
        sort_by: str | None = None,
        archived: bool = False,
    ) -> DerivedView[Any]:
        d = self.definition(attr)
        if d.view is None:
            raise ValueError(f"{attr} has no derived view")
        inp = DeriveViewInput(
            spec=d.view,
            search=search,
            filters=dict(filters or {}),
            sort_by=sort_by,
            archived=archived,
        )
        favorites = self.favorites if attr == self.favorites_of else None
        return run_derive(inp, self.repos[attr], favorites)

    def toggle_favorite(self, record_id: str) -> bool:
        """Flip a record's membership in the page's favorite set."""
        if self.favorites is None:
            raise ValueError(f"{self.title} keeps no favorite set")
        return self.favorites.toggle(record_id)

    # --- Exports ---

    def csv_columns(self, attr: str) -> tuple[Column, ...]:
        return self.definition(attr).columns

    def export_csv(self, attr: str, *, include_archived: bool | None = None) -> ExportOutput:
        d = self.definition(attr)
        if include_archived is None:
            include_archived = d.export_archived
        records = self.records(attr) if include_archived else self.live(attr)
        inp = CsvExportInput(
            prefix=d.export_prefix or d.attr, records=records, columns=self.csv_columns(attr)
        )
        return run_csv(inp, self.time, self.rules.export)

    def export_backup(self) -> ExportOutput:
        """Full-page JSON backup of every collection (and the favorite set)."""
        payload: dict[str, Any] = {d.attr: self.records(d.attr) for d in self.collections}
        if self.favorites is not None:
            payload["favorites"] = sorted(self.favorites.get())
        return run_json(JsonExportInput(prefix=f"{self.prefix}-backup", payload=payload), self.time)

    def export_report(self) -> ExportOutput:
        inp = TextExportInput(prefix=f"{self.slug}-report", report=self.report())
        return run_text(inp, self.time, self.rules.export)

    @abstractmethod
    def report(self) -> TextReport:
        """Page-wide text report."""

    @abstractmethod
    def advisory(self) -> str:
        """Plain-text summary with the page's recommendations."""

    def reset(self) -> None:
        """Clear every collection and the favorite set."""
        for d in self.collections:
            self.services[d.attr].clear()
        if self.favorites is not None:
            self.favorites.clear()


def rule(width: int, char: str = "─") -> str:
    return char * width
