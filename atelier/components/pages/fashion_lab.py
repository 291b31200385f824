"""
Fashion Lab page - designs, materials, collection drops, IP records,
tech packs, fit tests and trend forecasts.

Store keys: fl_designs, fl_materials, fl_collections, fl_ip, fl_techpacks,
fl_fittests, fl_trends, fl_prodtasks, fl_collabs, fl_comments, fl_favorites.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
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
    aggregate,
    average,
    count_by,
    count_where,
    round_half_up,
    total,
)
from atelier.domain.entities import (
    DESIGN_CATEGORIES,
    FIT_SIZES,
    MATERIAL_TYPES,
    PIPELINE_STAGES,
    Collaborator,
    Comment,
    Design,
    FitTest,
    IPRecord,
    Lineup,
    Material,
    Task,
    TechPack,
    TrendItem,
)

from ._base import CollectionDef, DashboardPage, rule

IN_PRODUCTION_STAGES = ("Production", "Shipping")
PENDING_FILINGS_LIMIT = 2
DEFAULT_OWNERSHIP = {"You": 100.0}


def design_kpis(live: list[Design]) -> dict[str, float]:
    return {
        "concept": count_where(live, "status", "Concept"),
        "prototype": count_where(live, "status", "Prototype"),
        "final": count_where(live, "status", "Final"),
        "in_production": sum(1 for d in live if d.pipeline_stage in IN_PRODUCTION_STAGES),
        "avg_cost": average(live, "cost_estimate"),
    }


def design_breakdowns(live: list[Design]) -> dict[str, dict[str, Any]]:
    return {
        "by_category": count_by(live, "category", DESIGN_CATEGORIES),
        "pipeline": count_by(live, "pipeline_stage", PIPELINE_STAGES),
    }


def material_kpis(live: list[Material]) -> dict[str, float]:
    return {
        "avg_sustainability": average(live, "sustainability_score"),
        "quantity": int(total(live, "quantity")),
    }


def lineup_kpis(live: list[Lineup]) -> dict[str, float]:
    return {
        "revenue": total(live, "revenue"),
        "limited": count_where(live, "drop_type", "Limited"),
        "preorder": count_where(live, "drop_type", "Preorder"),
    }


def ip_kpis(live: list[IPRecord]) -> dict[str, float]:
    return {
        "registered": count_where(live, "status", "registered"),
        "pending": count_where(live, "status", "pending"),
        "filed": count_where(live, "status", "filed"),
        "confidential": sum(1 for r in live if r.confidential),
    }


def avg_rating(tests: list[FitTest]) -> float:
    """Mean fit rating to one decimal; 0 for no tests."""
    return round_half_up(aggregate(tests, "rating").average * 10) / 10


def pass_rate(tests: list[FitTest]) -> int:
    """Percentage of approved fit tests."""
    if not tests:
        return 0
    return round_half_up(count_where(tests, "approved", True) / len(tests) * 100)


def fit_test_kpis(live: list[FitTest]) -> dict[str, float]:
    return {
        "approved": count_where(live, "approved", True),
        "avg_rating": avg_rating(live),
        "pass_rate": pass_rate(live),
    }


def ownership_total(record: IPRecord) -> float:
    return sum(record.ownership.values())


def days_until(drop_date: str, now: datetime) -> int | None:
    """Whole days until a drop date (rounded up), or None when unset/invalid."""
    if not drop_date:
        return None
    try:
        drop = datetime.fromisoformat(drop_date)
    except ValueError:
        return None
    if drop.tzinfo is None:
        drop = drop.replace(tzinfo=UTC)
    return math.ceil((drop - now).total_seconds() / 86400)


DESIGN_VIEW = ViewSpec(
    name="designs",
    search_fields=("name",),
    filter_fields=("type", "category", "status", "pipeline_stage"),
    sort_keys={
        "date": SortKey("created_at", "date"),
        "cost": SortKey("cost_estimate"),
        "name": SortKey("name", "text"),
    },
    default_sort="date",
    kpis=design_kpis,
    breakdowns=design_breakdowns,
)

MATERIAL_VIEW = ViewSpec(
    name="materials",
    search_fields=("name", "supplier"),
    tag_field=None,
    filter_fields=("type",),
    sort_keys={
        "sustainability": SortKey("sustainability_score"),
        "cost": SortKey("cost_per_yard"),
        "name": SortKey("name", "text"),
    },
    kpis=material_kpis,
    breakdowns=lambda live: {"by_type": count_by(live, "type", MATERIAL_TYPES)},
)

LINEUP_VIEW = ViewSpec(
    name="collections",
    search_fields=("name", "theme"),
    tag_field=None,
    filter_fields=("drop_type",),
    sort_keys={
        "date": SortKey("created_at", "date"),
        "revenue": SortKey("revenue"),
        "name": SortKey("name", "text"),
    },
    default_sort="date",
    is_archived=lambda c: c.archived,
    kpis=lineup_kpis,
)

IP_VIEW = ViewSpec(
    name="ip",
    search_fields=("trademark_ref", "copyright_tag"),
    tag_field=None,
    filter_fields=("status", "design_id"),
    sort_keys={"date": SortKey("created_at", "date")},
    default_sort="date",
    is_archived=lambda r: r.status == "expired",
    kpis=ip_kpis,
)

TECH_PACK_VIEW = ViewSpec(
    name="tech_packs",
    search_fields=("fabric_specs", "trim_specs", "labels"),
    tag_field=None,
    filter_fields=("design_id",),
    sort_keys={"date": SortKey("created_at", "date"), "version": SortKey("version")},
    default_sort="date",
    kpis=lambda live: {"approved": count_where(live, "approved", True)},
)

FIT_TEST_VIEW = ViewSpec(
    name="fit_tests",
    search_fields=("tester_name", "fit_notes"),
    tag_field="issues",
    filter_fields=("design_id", "size"),
    sort_keys={"date": SortKey("created_at", "date"), "rating": SortKey("rating")},
    default_sort="date",
    kpis=fit_test_kpis,
    breakdowns=lambda live: {"by_size": count_by(live, "size", FIT_SIZES)},
)

TREND_VIEW = ViewSpec(
    name="trends",
    search_fields=("name", "category", "source"),
    tag_field=None,
    filter_fields=("category",),
    sort_keys={
        "score": SortKey("score"),
        "date": SortKey("created_at", "date"),
        "name": SortKey("name", "text"),
    },
    default_sort="score",
    kpis=lambda live: {"avg_score": average(live, "score")},
)

DESIGN = EntityDef(
    name="Design",
    model=Design,
    title_field="name",
    overrides=(FieldRule("cost_estimate", "number", min_value=0),),
    duplicate_reset={"versions": ["v1"]},
)

MATERIAL = EntityDef(
    name="Material",
    model=Material,
    title_field="name",
    overrides=(
        FieldRule("sustainability_score", "score"),
        FieldRule("moq", "integer", min_value=0),
        FieldRule("quantity", "integer", min_value=0),
    ),
)

LINEUP = EntityDef(
    name="Collection",
    model=Lineup,
    title_field="name",
    overrides=(FieldRule("inventory_limit", "integer", min_value=0),),
    archive=("archived", True),
    restore=("archived", False),
)

IP_RECORD = EntityDef(
    name="IP record",
    model=IPRecord,
    title_field="design_id",
    archive=("status", "expired"),
    restore=("status", "pending"),
    prepend=False,
)

TECH_PACK = EntityDef(
    name="Tech pack",
    model=TechPack,
    title_field="design_id",
    overrides=(FieldRule("version", "integer", min_value=1),),
)

FIT_TEST = EntityDef(
    name="Fit test",
    model=FitTest,
    title_field="tester_name",
    overrides=(FieldRule("rating", "integer", min_value=1, max_value=10),),
)

TREND = EntityDef(
    name="Trend",
    model=TrendItem,
    title_field="name",
    overrides=(FieldRule("score", "score"),),
)

APPROVABLE = ("tech_packs", "fit_tests")

DESIGN_COLUMNS = (
    Column("Name", "name"),
    Column("Type", "type"),
    Column("Category", "category"),
    Column("Status", "status"),
    Column("Pipeline", "pipeline_stage"),
    Column("Cost", "cost_estimate"),
    Column("Tags", "tags"),
)


class FashionLabPage(DashboardPage):
    """Design studio, materials library, collection drops and IP ledger."""

    prefix = "fl"
    title = "Fashion Lab"
    slug = "fashion-lab"
    favorites_key = "fl_favorites"
    favorites_of = "designs"
    collections = (
        CollectionDef(
            "designs",
            "fl_designs",
            DESIGN,
            DESIGN_VIEW,
            DESIGN_COLUMNS,
            export_prefix="designs",
        ),
        CollectionDef("materials", "fl_materials", MATERIAL, MATERIAL_VIEW),
        CollectionDef("collections", "fl_collections", LINEUP, LINEUP_VIEW),
        CollectionDef("ip_records", "fl_ip", IP_RECORD, IP_VIEW),
        CollectionDef("tech_packs", "fl_techpacks", TECH_PACK, TECH_PACK_VIEW),
        CollectionDef("fit_tests", "fl_fittests", FIT_TEST, FIT_TEST_VIEW),
        CollectionDef("trends", "fl_trends", TREND, TREND_VIEW),
        CollectionDef(
            "production_tasks",
            "fl_prodtasks",
            EntityDef("Production task", Task, "text", prepend=False),
        ),
        CollectionDef(
            "collaborators",
            "fl_collabs",
            EntityDef("Collaborator", Collaborator, "name", prepend=False),
        ),
        CollectionDef("comments", "fl_comments", EntityDef("Comment", Comment, "text")),
    )

    def add_ip_record(
        self, design_id: str, values: Mapping[str, Any] | None = None
    ) -> tuple[IPRecord | None, list[ValidationError]]:
        """Register IP for a design; ownership defaults to a single 100% holder."""
        data = {"ownership": DEFAULT_OWNERSHIP, **(values or {}), "design_id": design_id}
        return self.services["ip_records"].create(data)

    def add_tech_pack(
        self, design_id: str, values: Mapping[str, Any] | None = None
    ) -> tuple[TechPack | None, list[ValidationError]]:
        """Start a tech pack for a design at version 1, unapproved."""
        data = {**(values or {}), "design_id": design_id, "version": 1, "approved": False}
        return self.services["tech_packs"].create(data)

    def add_fit_test(
        self, design_id: str, values: Mapping[str, Any] | None = None
    ) -> tuple[FitTest | None, list[ValidationError]]:
        data = {**(values or {}), "design_id": design_id, "approved": False}
        return self.services["fit_tests"].create(data)

    def toggle_approved(self, attr: str, record_id: str) -> bool:
        """Flip the approved flag on a tech pack or fit test."""
        if attr not in APPROVABLE:
            raise ValueError(f"{attr} records cannot be approved")
        service = self.service(attr)
        current = service.get_by_id(record_id)
        if current is None:
            raise ValueError(f"{self.definition(attr).entity.name} with ID {record_id} not found")
        record, errors = service.update(record_id, {"approved": not current.approved})
        if record is None:
            codes = ", ".join(e.code for e in errors)
            raise ValueError(f"Could not update {record_id}: {codes}")
        return bool(record.approved)

    def design_name(self, design_id: str) -> str:
        return self.resolve_title("designs", design_id)

    def add_version(self, design_id: str) -> tuple[Design | None, list[ValidationError]]:
        """Append the next version label (v1, v2, ...) to a design."""
        design = self.services["designs"].get_by_id(design_id)
        if design is None:
            # An empty patch on a missing id yields record_not_found
            return self.services["designs"].update(design_id, {})
        versions = [*design.versions, f"v{len(design.versions) + 1}"]
        return self.services["designs"].update(design_id, {"versions": versions})

    def upcoming_drops(self) -> list[Lineup]:
        """Live collections whose drop date is still ahead."""
        now = self.time.now_utc()
        return [
            c
            for c in self.live("collections")
            if (days := days_until(c.drop_date, now)) is not None and days > 0
        ]

    def days_to_drop(self, lineup: Lineup) -> int | None:
        return days_until(lineup.drop_date, self.time.now_utc())

    def ip_summary(self) -> str:
        records = self.records("ip_records")
        kpis = ip_kpis(records)
        expired = count_where(records, "status", "expired")
        unbalanced = sum(1 for r in records if ownership_total(r) != 100)
        recommendation = (
            "Prioritize pending filings."
            if kpis["pending"] > PENDING_FILINGS_LIMIT
            else "Portfolio in good standing."
        )
        lines = [
            "IP Portfolio Summary",
            rule(35),
            f"• {len(records)} records total",
            f"• {kpis['registered']} registered, {kpis['pending']} pending",
            f"• {kpis['confidential']} classified as confidential",
            f"• {unbalanced} with ownership not totalling 100%",
            f"• {'WARNING: Expired records detected' if expired else 'No expired records'}",
            f"• Recommendation: {recommendation}",
        ]
        return "\n".join(lines)

    def ip_record_text(self, record_id: str) -> str | None:
        """Plain-text sheet for one IP record."""
        record = self.repos["ip_records"].get_by_id(record_id)
        if record is None:
            return None
        ownership = ", ".join(f"{k}: {v:g}%" for k, v in record.ownership.items())
        return "\n".join(
            [
                f"IP Record: {self.design_name(record.design_id)}",
                f"Status: {record.status}",
                f"TM: {record.trademark_ref}",
                f"©: {record.copyright_tag}",
                f"Licensing: {record.licensing_notes}",
                f"Ownership: {ownership}",
                f"History: {'; '.join(record.version_history)}",
            ]
        )

    def advisory(self) -> str:
        designs = self.records("designs")
        active = self.live("collections")
        comparison = "\n".join(
            f"• {c.name}: {len(c.design_ids)} designs, ${c.revenue:,.0f} revenue, {c.drop_type}"
            for c in active
        )
        categories = "\n".join(
            f"• {category}: {count} designs"
            for category, count in count_by(designs, "category").items()
        )
        lines = [
            "Cross-Collection Comparison",
            rule(35),
            comparison or "• No active collections",
            "",
            "Category Breakdown:",
            categories or "• No designs",
            "",
            "Historical Performance:",
            f"• {len(designs)} total designs created",
            f"• {count_where(designs, 'status', 'Final')} finalized",
            f"• Avg cost: ${average(designs, 'cost_estimate')}",
        ]
        return "\n".join(lines)

    def report(self) -> TextReport:
        designs = self.records("designs")
        materials = self.records("materials")
        summary = "\n".join(
            [
                f"Designs: {len(designs)}",
                f"Materials: {len(materials)}",
                f"Collections: {len(self.records('collections'))}",
                f"Tech Packs: {len(self.records('tech_packs'))}",
                f"Fit Tests: {len(self.records('fit_tests'))}",
                f"IP Records: {len(self.records('ip_records'))}",
                f"Team: {len(self.records('collaborators'))}",
                f"Revenue: ${total(self.records('collections'), 'revenue'):,.0f}",
                f"Sustainability: {average(materials, 'sustainability_score')}%",
            ]
        )
        rows = "\n".join(
            f"  {d.name} | {d.type} | {d.category} | {d.status} | ${d.cost_estimate:g}"
            for d in designs
        )
        return TextReport(
            title="Fashion Lab Report",
            summary=summary,
            blocks=[f"{rule(self.rules.export.rule_width)}\nDesigns:\n{rows}"],
        )

    def export_ip_record(self, record_id: str) -> ExportOutput | None:
        text = self.ip_record_text(record_id)
        if text is None:
            return None
        report = TextReport(title="IP Record", summary=text)
        inp = TextExportInput(prefix="ip-record", report=report)
        return run_text(inp, self.time, self.rules.export)

    def tech_pack_text(self, record_id: str) -> str | None:
        pack = self.repos["tech_packs"].get_by_id(record_id)
        if pack is None:
            return None
        lines = [
            f"Tech Pack: {self.design_name(pack.design_id)}",
            f"Version: {pack.version}{' (approved)' if pack.approved else ''}",
            f"Fabric: {pack.fabric_specs}",
            f"Trims: {pack.trim_specs}",
            f"Labels: {pack.labels}",
            f"Care: {pack.care_instructions}",
            f"Packaging: {pack.packaging_notes}",
        ]
        lines.extend(f"{name}: {value}" for name, value in pack.measurements.items())
        return "\n".join(lines)

    def export_tech_pack(self, record_id: str) -> ExportOutput | None:
        text = self.tech_pack_text(record_id)
        if text is None:
            return None
        report = TextReport(title="Tech Pack", summary=text)
        inp = TextExportInput(prefix="techpack", report=report)
        return run_text(inp, self.time, self.rules.export)

    def fit_report_text(self, record_id: str) -> str | None:
        test = self.repos["fit_tests"].get_by_id(record_id)
        if test is None:
            return None
        return "\n".join(
            [
                f"Fit Report: {self.design_name(test.design_id)}",
                f"Tester: {test.tester_name}",
                f"Size: {test.size}",
                f"Rating: {test.rating}/10",
                f"Notes: {test.fit_notes}",
                f"Issues: {', '.join(test.issues)}",
            ]
        )

    def export_fit_report(self, record_id: str) -> ExportOutput | None:
        text = self.fit_report_text(record_id)
        if text is None:
            return None
        report = TextReport(title="Fit Report", summary=text)
        inp = TextExportInput(prefix="fit-report", report=report)
        return run_text(inp, self.time, self.rules.export)

    def trends_report(self) -> TextReport:
        """Trend forecast, highest score first."""
        trends = self.view("trends").items
        lines = [f"{t.name} | Score: {t.score} | {t.category} | {t.projected}" for t in trends]
        return TextReport(
            title="Trend Forecast",
            summary=f"Trends: {len(trends)} | Avg score: {average(trends, 'score')}",
            blocks=["\n".join(lines)] if lines else [],
            empty_message="No trends",
        )

    def export_trends(self) -> ExportOutput:
        inp = TextExportInput(prefix="trends", report=self.trends_report())
        return run_text(inp, self.time, self.rules.export)
