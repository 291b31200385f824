"""
Prototype Vault page - versioned prototypes with an archive shelf.

Store keys: pv_protos, pv_collabs, pv_comments, pv_tasks.
Favorites live on the record (Prototype.favorited).
"""

from __future__ import annotations

from typing import Any

from atelier.components.export import (
    Column,
    ExportOutput,
    TextExportInput,
    TextReport,
    run_text,
)
from atelier.components.mutations import EntityDef, FieldRule, ValidationError
from atelier.components.views import (
    SortKey,
    ViewSpec,
    count_by,
    count_where,
    round_half_up,
    top_n,
    top_value,
    total,
)
from atelier.domain.entities import (
    PROTOTYPE_PHASES,
    Collaborator,
    Comment,
    Prototype,
    Task,
)

from ._base import CollectionDef, DashboardPage, rule

TESTING_BACKLOG = 3
MIN_VAULT_SIZE = 3


def avg_iterations(live: list[Prototype]) -> float:
    """Mean iterations to one decimal place."""
    if not live:
        return 0
    return round_half_up(total(live, "iterations") / len(live) * 10) / 10


def prototype_kpis(live: list[Prototype]) -> dict[str, float]:
    return {
        "draft": count_where(live, "status", "draft"),
        "testing": count_where(live, "status", "testing"),
        "approved": count_where(live, "status", "approved"),
        "iterations": int(total(live, "iterations")),
        "avg_iterations": avg_iterations(live),
        "views": int(total(live, "views")),
        "interactions": int(total(live, "interactions")),
    }


def prototype_breakdowns(live: list[Prototype]) -> dict[str, dict[str, Any]]:
    return {
        "by_type": count_by(live, "type"),
        "by_phase": count_by(live, "phase", PROTOTYPE_PHASES),
    }


PROTOTYPE_VIEW = ViewSpec(
    name="prototypes",
    search_fields=("title",),
    filter_fields=("type", "status", "phase"),
    sort_keys={
        "date": SortKey("created_at", "date"),
        "version": SortKey("version"),
        "name": SortKey("title", "text"),
    },
    default_sort="date",
    is_archived=lambda p: p.status == "archived",
    favorite_field="favorited",
    kpis=prototype_kpis,
    breakdowns=prototype_breakdowns,
)

PROTOTYPE = EntityDef(
    name="Prototype",
    model=Prototype,
    overrides=(
        FieldRule("version", "integer", min_value=1),
        FieldRule("iterations", "integer", min_value=1),
        FieldRule("views", "integer", min_value=0),
        FieldRule("interactions", "integer", min_value=0),
    ),
    duplicate_reset={"version": 1, "iterations": 1, "status": "draft", "favorited": False},
    archive=("status", "archived"),
    restore=("status", "draft"),
)

PROTOTYPE_COLUMNS = (
    Column("Prototype", "title"),
    Column("Type", "type"),
    Column("Version", "version"),
    Column("Iterations", "iterations"),
    Column("Views", "views"),
    Column("Interactions", "interactions"),
    Column("Status", "status"),
    Column("Phase", "phase"),
)


class PrototypeVaultPage(DashboardPage):
    """Prototypes with version history, feedback and tasks."""

    prefix = "pv"
    title = "Prototype Vault"
    slug = "prototype"
    collections = (
        CollectionDef(
            "prototypes",
            "pv_protos",
            PROTOTYPE,
            PROTOTYPE_VIEW,
            PROTOTYPE_COLUMNS,
            export_prefix="prototypes",
        ),
        CollectionDef(
            "collaborators",
            "pv_collabs",
            EntityDef("Collaborator", Collaborator, "name", prepend=False),
        ),
        CollectionDef("comments", "pv_comments", EntityDef("Comment", Comment, "text")),
        CollectionDef("tasks", "pv_tasks", EntityDef("Task", Task, "text", prepend=False)),
    )

    def toggle_favorite(self, record_id: str) -> bool:
        """Flip the prototype's own favorited flag."""
        current = self.services["prototypes"].get_by_id(record_id)
        if current is None:
            raise ValueError(f"Prototype with ID {record_id} not found")
        record, errors = self.services["prototypes"].update(
            record_id, {"favorited": not current.favorited}
        )
        if record is None:
            codes = ", ".join(e.code for e in errors)
            raise ValueError(f"Could not update prototype {record_id}: {codes}")
        return record.favorited

    def bump_version(self, record_id: str) -> tuple[Prototype | None, list[ValidationError]]:
        """Next version: version and iterations both go up by one."""
        return self.services["prototypes"].increment(record_id, {"version": 1, "iterations": 1})

    def archived(self) -> list[Prototype]:
        return [p for p in self.records("prototypes") if p.status == "archived"]

    def comments_for(self, prototype_id: str) -> list[Comment]:
        return [c for c in self.records("comments") if c.target_id == prototype_id]

    def tasks_for(self, prototype_id: str) -> list[Task]:
        return [t for t in self.records("tasks") if t.target_id == prototype_id]

    def advisory(self) -> str:
        live = self.live("prototypes")
        kpis = prototype_kpis(live)
        most_iterated = top_n(live, "iterations", 1)
        open_tasks = sum(1 for t in self.records("tasks") if not t.done)

        if kpis["testing"] > TESTING_BACKLOG:
            recommendation = "Focus on completing testing before starting new prototypes."
        elif len(live) < MIN_VAULT_SIZE:
            recommendation = "Start adding prototypes to build your vault."
        else:
            recommendation = "Good velocity. Push testing prototypes to approval."

        lines = [
            "Prototype Vault Intelligence",
            rule(35),
            f"• {len(live)} prototypes, {len(self.archived())} archived",
            f"• Total iterations: {kpis['iterations']}",
            f"• Avg iterations: {kpis['avg_iterations']}",
            f"• Total views: {kpis['views']:,}",
            f"• {kpis['approved']} approved, {kpis['testing']} testing",
            f"• Most iterated: {most_iterated[0].title if most_iterated else 'N/A'}",
            f"• Top type: {top_value(live, 'type') or 'N/A'}",
            f"• {open_tasks} open tasks",
            f"• Recommendation: {recommendation}",
        ]
        return "\n".join(lines)

    def _summary(self, live: list[Prototype]) -> str:
        return (
            f"Total: {len(live)} | Iterations: {int(total(live, 'iterations'))} | "
            f"Views: {int(total(live, 'views'))}"
        )

    def report(self) -> TextReport:
        live = self.live("prototypes")
        lines = [
            f"{p.title} ({p.type}) — v{p.version} — {p.iterations} iterations — {p.status}"
            for p in live
        ]
        return TextReport(
            title="Prototype Vault Report",
            summary=self._summary(live),
            blocks=["\n".join(lines)] if lines else [],
        )

    def intelligence_report(self) -> TextReport:
        """Rankings by iteration count plus success/failure notes."""
        live = self.live("prototypes")
        kpis = prototype_kpis(live)
        rankings = "\n".join(
            f"  {i}. {p.title} ({p.type}) — v{p.version} — {p.iterations} iter — {p.status}"
            for i, p in enumerate(top_n(live, "iterations", len(live)), start=1)
        )
        notes = "\n".join(
            f"  {p.title}: "
            + " ".join(
                part
                for part in (
                    f"✓ {p.success_notes}" if p.success_notes else "",
                    f"✗ {p.failure_notes}" if p.failure_notes else "",
                )
                if part
            )
            for p in live
            if p.success_notes or p.failure_notes
        )
        return TextReport(
            title="Prototype Intelligence Report",
            summary=(
                f"{self._summary(live)}\n"
                f"Approved: {kpis['approved']} | Testing: {kpis['testing']}"
            ),
            blocks=[f"Rankings:\n{rankings}", f"Notes:\n{notes}"],
        )

    def export_intelligence_report(self) -> ExportOutput:
        inp = TextExportInput(prefix="prototype-intelligence", report=self.intelligence_report())
        return run_text(inp, self.time, self.rules.export)
