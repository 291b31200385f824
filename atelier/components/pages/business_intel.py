"""
Business Intelligence page - market signals, alerts and the intelligence summary.

Store keys: bi_signals, bi_comments, bi_tasks, bi_collabs, bi_alerts, bi_favs.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from atelier.components.export import Column, TextReport, format_date
from atelier.components.mutations import EntityDef, FieldRule, ValidationError
from atelier.components.views import (
    TRAJECTORY_RANK,
    SortKey,
    ViewSpec,
    average,
    count_where,
    group_stats,
    percentage_split,
    top_value,
)
from atelier.domain.entities import (
    SIGNAL_TYPES,
    TRAJECTORIES,
    Alert,
    Collaborator,
    Comment,
    Signal,
    Task,
)

from ._base import CollectionDef, DashboardPage, rule

logger = logging.getLogger(__name__)

HIGH_STRENGTH = 75
ACT_STRENGTH = 70


def signal_kpis(live: list[Signal]) -> dict[str, float]:
    return {
        "rising": count_where(live, "trajectory", "Rising"),
        "stable": count_where(live, "trajectory", "Stable"),
        "falling": count_where(live, "trajectory", "Falling"),
        "avg_strength": average(live, "strength"),
        "avg_confidence": average(live, "confidence"),
        "high_strength": sum(1 for s in live if s.strength >= HIGH_STRENGTH),
    }


def signal_breakdowns(live: list[Signal]) -> dict[str, dict[str, Any]]:
    by_type = group_stats(live, "type", ("strength", "confidence"), SIGNAL_TYPES)
    return {
        "by_type": {t: {"count": g.count, **g.averages} for t, g in by_type.items()},
        "trajectory": percentage_split(live, "trajectory", TRAJECTORIES),
    }


SIGNAL_VIEW = ViewSpec(
    name="signals",
    search_fields=("title",),
    filter_fields=("type", "trajectory"),
    sort_keys={
        "strength": SortKey("strength"),
        "confidence": SortKey("confidence"),
        "trajectory": SortKey("trajectory", "ordinal", TRAJECTORY_RANK),
        "date": SortKey("created_at", "date"),
    },
    default_sort="strength",
    is_archived=lambda s: s.archived,
    kpis=signal_kpis,
    breakdowns=signal_breakdowns,
)

SIGNAL = EntityDef(
    name="Signal",
    model=Signal,
    overrides=(
        FieldRule("strength", "score"),
        FieldRule("confidence", "score"),
    ),
    duplicate_reset={"archived": False},
    archive=("archived", True),
    restore=("archived", False),
)


def signal_columns(date_format: str = "%b %d") -> tuple[Column, ...]:
    return (
        Column("Signal", "title"),
        Column("Type", "type"),
        Column("Strength", "strength"),
        Column("Trajectory", "trajectory"),
        Column("Confidence", "confidence"),
        Column("Source", "source"),
        Column("Date", "created_at", render=lambda s: format_date(s.created_at, date_format)),
    )


def intelligence_summary(live: list[Signal]) -> str:
    """Template summary of the live signals: momentum, mix and a recommendation."""
    kpis = signal_kpis(live)
    rising = [s for s in live if s.trajectory == "Rising"]
    pricing = [s for s in live if s.type == "Pricing"]
    cultural_rising = sum(1 for s in rising if s.type == "Cultural")

    if any(s.strength >= ACT_STRENGTH for s in rising):
        recommendation = "Act on rising high-strength signals now."
    elif rising:
        recommendation = "Monitor rising signals — approaching action threshold."
    else:
        recommendation = "No urgent signals. Continue data collection."

    lines = [
        "Intelligence Summary",
        rule(35),
        f"• {len(live)} active signals tracked",
        f"• {kpis['rising']} rising trends · {kpis['falling']} falling",
        f"• Avg strength: {kpis['avg_strength']}% · Avg confidence: {kpis['avg_confidence']}%",
        f"• Top type: {top_value(live, 'type') or 'N/A'}",
        f"• {kpis['high_strength']} high-strength signals",
        f"• Pricing signals: {len(pricing)} "
        f"({sum(1 for s in pricing if s.trajectory == 'Rising')} rising)",
        f"• Cultural timing: {cultural_rising} active cultural alerts",
        f"• Recommendation: {recommendation}",
    ]
    return "\n".join(lines)


class BusinessIntelligencePage(DashboardPage):
    """Signals with comments, tasks, collaborators and trajectory alerts."""

    prefix = "bi"
    title = "Business Intelligence"
    slug = "intel"
    favorites_key = "bi_favs"
    favorites_of = "signals"
    collections = (
        CollectionDef(
            "signals",
            "bi_signals",
            SIGNAL,
            SIGNAL_VIEW,
            export_prefix="intelligence",
        ),
        CollectionDef("comments", "bi_comments", EntityDef("Comment", Comment, "text")),
        CollectionDef("tasks", "bi_tasks", EntityDef("Task", Task, "text", prepend=False)),
        CollectionDef(
            "collaborators",
            "bi_collabs",
            EntityDef("Collaborator", Collaborator, "name", prepend=False),
        ),
        CollectionDef("alerts", "bi_alerts", EntityDef("Alert", Alert, "message")),
    )

    def csv_columns(self, attr: str) -> tuple[Column, ...]:
        if attr == "signals":
            return signal_columns(self.rules.export.date_format)
        return super().csv_columns(attr)

    def _alert(self, signal: Signal, message: str) -> None:
        alert, errors = self.services["alerts"].create(
            {"signal_id": signal.id, "message": message}
        )
        if alert is None:
            logger.warning("Could not record alert for signal %s: %s", signal.id, errors)

    def add_signal(self, values: Mapping[str, Any]) -> tuple[Signal | None, list[ValidationError]]:
        """Create a signal and raise a "new signal" alert."""
        signal, errors = self.services["signals"].create(values)
        if signal is not None:
            self._alert(signal, f"New signal added: {signal.title}")
        return signal, errors

    def set_trajectory(
        self, signal_id: str, trajectory: str
    ) -> tuple[Signal | None, list[ValidationError]]:
        """Change a signal's trajectory; an actual change raises an alert."""
        current = self.services["signals"].get_by_id(signal_id)
        signal, errors = self.services["signals"].update(signal_id, {"trajectory": trajectory})
        if signal is not None and current is not None and current.trajectory != trajectory:
            self._alert(signal, f"{signal.title} trajectory changed to {trajectory}")
        return signal, errors

    def unread_alerts(self) -> int:
        return sum(1 for a in self.records("alerts") if not a.read)

    def mark_all_read(self) -> int:
        """Mark every alert read. Returns how many changed."""
        alerts = self.records("alerts")
        changed = sum(1 for a in alerts if not a.read)
        if changed:
            self.repos["alerts"].replace_all([a.model_copy(update={"read": True}) for a in alerts])
        return changed

    def comments_for(self, signal_id: str) -> list[Comment]:
        return [c for c in self.records("comments") if c.target_id == signal_id]

    def tasks_for(self, signal_id: str) -> list[Task]:
        return [t for t in self.records("tasks") if t.target_id == signal_id]

    def advisory(self) -> str:
        return intelligence_summary(self.live("signals"))

    def report(self) -> TextReport:
        live = self.live("signals")
        kpis = signal_kpis(live)
        blocks = [
            f"[{s.type}] {s.title}\n"
            f"  Strength: {s.strength}% | Trajectory: {s.trajectory} | "
            f"Confidence: {s.confidence}%\n"
            f"  {s.description}"
            for s in live
        ]
        return TextReport(
            title="Business Intelligence Report",
            summary=(
                f"Signals: {len(live)} | Avg Strength: {kpis['avg_strength']}% | "
                f"Rising: {kpis['rising']}"
            ),
            blocks=blocks,
        )
