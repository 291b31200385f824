"""
Problem-Solution Mapper page - challenges, their solutions and the strategy report.

Store keys: psm_challenges, psm_solutions, psm_collabs, psm_comments.
Deleting a challenge deletes the solutions that reference it.
"""

from __future__ import annotations

from collections.abc import Mapping
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
    SEVERITY_RANK,
    SortKey,
    ViewSpec,
    average,
    count_by,
    count_where,
    round_half_up,
    top_n,
)
from atelier.domain.entities import (
    CHALLENGE_CATEGORIES,
    SEVERITIES,
    Challenge,
    Collaborator,
    Comment,
    Solution,
)

from ._base import Cascade, CollectionDef, DashboardPage, rule

PRIORITY_IMPACT = 60
PRIORITY_SEVERITIES = ("critical", "high")
SOLVE_RATE_TARGET = 50


def solve_rate(challenges: list[Challenge]) -> int:
    """Percentage of challenges solved; zero for an empty list."""
    if not challenges:
        return 0
    return round_half_up(count_where(challenges, "status", "solved") / len(challenges) * 100)


def challenge_kpis(live: list[Challenge]) -> dict[str, float]:
    return {
        "open": count_where(live, "status", "open"),
        "exploring": count_where(live, "status", "exploring"),
        "solved": count_where(live, "status", "solved"),
        "critical": count_where(live, "severity", "critical"),
        "avg_impact": average(live, "impact"),
        "solve_rate": solve_rate(live),
    }


def challenge_breakdowns(live: list[Challenge]) -> dict[str, dict[str, Any]]:
    return {
        "by_category": count_by(live, "category", CHALLENGE_CATEGORIES),
        "by_severity": count_by(live, "severity", SEVERITIES),
    }


def solution_kpis(live: list[Solution]) -> dict[str, float]:
    return {
        "proposed": count_where(live, "status", "proposed"),
        "testing": count_where(live, "status", "testing"),
        "implemented": count_where(live, "status", "implemented"),
        "avg_effectiveness": average(live, "effectiveness"),
    }


def priority_matrix(challenges: list[Challenge]) -> list[Challenge]:
    """High-impact challenges of critical or high severity."""
    return [
        c
        for c in challenges
        if c.impact >= PRIORITY_IMPACT and c.severity in PRIORITY_SEVERITIES
    ]


CHALLENGE_VIEW = ViewSpec(
    name="challenges",
    search_fields=("title",),
    filter_fields=("category", "severity", "status"),
    sort_keys={
        "severity": SortKey("severity", "ordinal", SEVERITY_RANK),
        "impact": SortKey("impact"),
        "date": SortKey("created_at", "date"),
    },
    default_sort="date",
    is_archived=lambda c: c.status == "archived",
    kpis=challenge_kpis,
    breakdowns=challenge_breakdowns,
)

SOLUTION_VIEW = ViewSpec(
    name="solutions",
    search_fields=("title", "description"),
    tag_field=None,
    filter_fields=("challenge_id", "status", "effort"),
    sort_keys={
        "effectiveness": SortKey("effectiveness"),
        "date": SortKey("created_at", "date"),
    },
    default_sort="effectiveness",
    is_archived=lambda s: s.status == "rejected",
    kpis=solution_kpis,
)

CHALLENGE = EntityDef(
    name="Challenge",
    model=Challenge,
    overrides=(FieldRule("impact", "score"),),
    duplicate_reset={"status": "open"},
    archive=("status", "archived"),
    restore=("status", "open"),
)

SOLUTION = EntityDef(
    name="Solution",
    model=Solution,
    overrides=(FieldRule("effectiveness", "score"),),
    duplicate_reset={"status": "proposed"},
    archive=("status", "rejected"),
    restore=("status", "proposed"),
)


class ProblemSolutionPage(DashboardPage):
    """Challenges mapped to candidate solutions."""

    prefix = "psm"
    title = "Problem–Solution Mapper"
    slug = "psm"
    collections = (
        CollectionDef(
            "challenges",
            "psm_challenges",
            CHALLENGE,
            CHALLENGE_VIEW,
            export_prefix="challenges",
            export_archived=True,
        ),
        CollectionDef("solutions", "psm_solutions", SOLUTION, SOLUTION_VIEW),
        CollectionDef(
            "collaborators",
            "psm_collabs",
            EntityDef("Collaborator", Collaborator, "name", prepend=False),
        ),
        CollectionDef("comments", "psm_comments", EntityDef("Comment", Comment, "text")),
    )
    cascades = (Cascade("challenges", "solutions", "challenge_id"),)

    def csv_columns(self, attr: str) -> tuple[Column, ...]:
        if attr != "challenges":
            return super().csv_columns(attr)
        counts = count_by(self.records("solutions"), "challenge_id")
        return (
            Column("Challenge", "title"),
            Column("Category", "category"),
            Column("Severity", "severity"),
            Column("Impact", "impact"),
            Column("Status", "status"),
            Column("Solutions", "id", render=lambda c: counts.get(c.id, 0)),
        )

    def add_solution(
        self, challenge_id: str, values: Mapping[str, Any]
    ) -> tuple[Solution | None, list[ValidationError]]:
        """Propose a solution for a challenge."""
        return self.services["solutions"].create({**values, "challenge_id": challenge_id})

    def solutions_for(self, challenge_id: str) -> list[Solution]:
        return [s for s in self.records("solutions") if s.challenge_id == challenge_id]

    def challenge_title(self, solution: Solution) -> str:
        return self.resolve_title("challenges", solution.challenge_id)

    def advisory(self) -> str:
        challenges = self.records("challenges")
        solutions = self.records("solutions")
        live = self.live("challenges")
        rate = solve_rate(challenges)
        unsolved_critical = sum(
            1 for c in challenges if c.severity == "critical" and c.status != "solved"
        )

        if unsolved_critical:
            recommendation = "Address critical challenges first."
        elif rate < SOLVE_RATE_TARGET:
            recommendation = "Increase solution velocity — map more creative approaches."
        else:
            recommendation = "Strong progress. Focus on implementing proposed solutions."

        lines = [
            "Problem–Solution Intelligence",
            rule(35),
            f"• {len(challenges)} challenges mapped, {len(solutions)} solutions proposed",
            f"• Solve rate: {rate}%",
            f"• {count_where(challenges, 'severity', 'critical')} critical, "
            f"{count_where(challenges, 'severity', 'high')} high severity",
            f"• {count_where(solutions, 'status', 'implemented')} solutions implemented",
            f"• Avg effectiveness: {average(solutions, 'effectiveness')}%",
            f"• Avg impact: {average(live, 'impact')}/100",
            f"• Unsolved critical: {unsolved_critical}",
            f"• Recommendation: {recommendation}",
        ]
        return "\n".join(lines)

    def _summary(self) -> str:
        challenges = self.records("challenges")
        return (
            f"Challenges: {len(challenges)} | Solutions: {len(self.records('solutions'))} | "
            f"Solve Rate: {solve_rate(challenges)}%"
        )

    def report(self) -> TextReport:
        blocks = []
        for c in self.records("challenges"):
            linked = self.solutions_for(c.id)
            lines = [
                f"[{c.severity.upper()}] {c.title} ({c.category}) — {c.status}",
                f"  Impact: {c.impact} | Solutions: {len(linked)}",
            ]
            lines.extend(
                f"  → {s.title} ({s.status}) — {s.effectiveness}% effective" for s in linked
            )
            blocks.append("\n".join(lines))
        return TextReport(title="Problem–Solution Map Report", summary=self._summary(), blocks=blocks)

    def strategy_report(self) -> TextReport:
        """Priority matrix plus the five most effective solutions."""
        priority = priority_matrix(self.live("challenges"))
        top = top_n(self.records("solutions"), "effectiveness", 5)
        blocks = [
            "Priority Matrix:\n  Critical/High Impact: "
            + (", ".join(c.title for c in priority) or "None"),
            "Top Solutions:\n"
            + "\n".join(
                f"  {i}. {s.title} — {s.effectiveness}% effective"
                for i, s in enumerate(top, start=1)
            ),
        ]
        return TextReport(title="Strategy Report", summary=self._summary(), blocks=blocks)

    def export_strategy_report(self) -> ExportOutput:
        inp = TextExportInput(prefix="psm-strategy", report=self.strategy_report())
        return run_text(inp, self.time, self.rules.export)
