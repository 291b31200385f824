"""
Funding page - funding rounds, the investor pipeline and readiness math.

Store keys: fd_rounds, fd_investors.

Pure helpers (dilution, runway, urgency, investor fit, term sheet score,
revenue-based financing payments) are plain functions so they can be
used without a store.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, Literal

from atelier.components.export import Column, TextReport
from atelier.components.mutations import EntityDef, FieldRule, ValidationError, coerce_tags
from atelier.components.views import (
    SortKey,
    ViewSpec,
    average,
    count_by,
    count_where,
    round_half_up,
    total,
)
from atelier.domain.entities import FundingRound, Investor

from ._base import CollectionDef, DashboardPage, rule

RunwayUrgency = Literal["critical", "warning", "healthy"]
TermSheetGrade = Literal["excellent", "good", "fair", "poor"]

NO_BURN_RUNWAY = 999
BASE_FIT = 50
FIT_BONUS = 25


# --- Readiness Calculations ---


def calculate_dilution(pre_money: float, investment: float) -> float:
    """Percentage of the post-money company sold for the investment."""
    post_money = pre_money + investment
    if post_money <= 0:
        return 0.0
    return investment / post_money * 100


def calculate_runway(cash: float, monthly_burn: float) -> int:
    """Whole months of runway; a zero burn counts as effectively unlimited."""
    if monthly_burn == 0:
        return NO_BURN_RUNWAY
    return math.floor(cash / monthly_burn)


def runway_urgency(months: int) -> RunwayUrgency:
    if months < 3:
        return "critical"
    if months < 6:
        return "warning"
    return "healthy"


def investor_fit(
    stages: Sequence[str], sectors: Sequence[str], stage: str, sector: str
) -> int:
    """50 base, +25 when the investor backs the stage, +25 for the sector."""
    score = BASE_FIT
    if stage in stages:
        score += FIT_BONUS
    if sector in sectors:
        score += FIT_BONUS
    return score


def score_term_sheet(favorable: Sequence[bool]) -> TermSheetGrade:
    """Grade a term sheet by the share of favorable terms."""
    if not favorable:
        return "poor"
    share = sum(1 for f in favorable if f) / len(favorable) * 100
    if share >= 80:
        return "excellent"
    if share >= 60:
        return "good"
    if share >= 40:
        return "fair"
    return "poor"


def rbf_payment(revenue_share: float, monthly_revenue: float) -> float:
    """Monthly revenue-based financing payment."""
    return monthly_revenue * (revenue_share / 100)


def rbf_payoff_months(amount: float, payback_cap: float, monthly_payment: float) -> int:
    """Months to repay amount times the payback cap percentage."""
    if monthly_payment == 0:
        return NO_BURN_RUNWAY
    return math.ceil(amount * (payback_cap / 100) / monthly_payment)


# --- Views ---


def round_kpis(live: list[FundingRound]) -> dict[str, float]:
    target = total(live, "target")
    raised = total(live, "raised")
    return {
        "target": target,
        "raised": raised,
        "percent_raised": round_half_up(raised / target * 100) if target else 0,
        "planning": count_where(live, "status", "planning"),
        "pitching": count_where(live, "status", "pitching"),
        "closed": count_where(live, "status", "closed"),
    }


def investor_kpis(live: list[Investor]) -> dict[str, float]:
    return {
        "avg_fit": average(live, "fit_score"),
        "contacted": sum(1 for i in live if i.contacted),
    }


ROUND_VIEW = ViewSpec(
    name="rounds",
    search_fields=("name",),
    tag_field="investors",
    filter_fields=("stage", "status"),
    sort_keys={
        "date": SortKey("created_at", "date"),
        "raised": SortKey("raised"),
        "target": SortKey("target"),
        "name": SortKey("name", "text"),
    },
    default_sort="date",
    is_archived=lambda r: r.status == "failed",
    kpis=round_kpis,
    breakdowns=lambda live: {"by_stage": count_by(live, "stage")},
)

INVESTOR_VIEW = ViewSpec(
    name="investors",
    search_fields=("name",),
    tag_field="sectors",
    filter_fields=("type",),
    sort_keys={
        "fit": SortKey("fit_score"),
        "name": SortKey("name", "text"),
    },
    default_sort="fit",
    kpis=investor_kpis,
    breakdowns=lambda live: {"by_type": count_by(live, "type")},
)

FUNDING_ROUND = EntityDef(
    name="Funding round",
    model=FundingRound,
    title_field="name",
    duplicate_reset={"status": "planning", "raised": 0, "closed_date": ""},
    archive=("status", "failed"),
    restore=("status", "planning"),
    prepend=False,
)

INVESTOR = EntityDef(
    name="Investor",
    model=Investor,
    title_field="name",
    overrides=(FieldRule("fit_score", "score"),),
    duplicate_reset={"contacted": False},
    prepend=False,
)

ROUND_COLUMNS = (
    Column("Round", "name"),
    Column("Stage", "stage"),
    Column("Status", "status"),
    Column("Target", "target"),
    Column("Raised", "raised"),
    Column("Valuation", "valuation"),
    Column("Investors", "investors"),
)

INVESTOR_COLUMNS = (
    Column("Investor", "name"),
    Column("Type", "type"),
    Column("Min Check", "check_min"),
    Column("Max Check", "check_max"),
    Column("Fit", "fit_score"),
    Column("Contacted", "contacted"),
)


class FundingPage(DashboardPage):
    """Funding rounds and investor pipeline."""

    prefix = "fd"
    title = "Funding"
    slug = "funding"
    collections = (
        CollectionDef(
            "rounds",
            "fd_rounds",
            FUNDING_ROUND,
            ROUND_VIEW,
            ROUND_COLUMNS,
            export_prefix="funding-rounds",
        ),
        CollectionDef(
            "investors",
            "fd_investors",
            INVESTOR,
            INVESTOR_VIEW,
            INVESTOR_COLUMNS,
            export_prefix="investors",
        ),
    )

    def round_dilution(self, funding_round: FundingRound) -> float:
        """Dilution implied by a round's target against its post-money valuation."""
        pre_money = funding_round.valuation - funding_round.target
        return calculate_dilution(pre_money, funding_round.target)

    def add_investor(
        self, values: Mapping[str, Any], *, stage: str, sector: str
    ) -> tuple[Investor | None, list[ValidationError]]:
        """Create an investor scored for fit against the studio's stage and sector."""
        fit = investor_fit(
            coerce_tags(values.get("stages")), coerce_tags(values.get("sectors")), stage, sector
        )
        return self.services["investors"].create({**values, "fit_score": fit})

    def rescore_investors(self, *, stage: str, sector: str) -> int:
        """Recompute every investor's fit score. Returns how many changed."""
        investors = self.records("investors")
        rescored = [
            i.model_copy(update={"fit_score": investor_fit(i.stages, i.sectors, stage, sector)})
            for i in investors
        ]
        changed = sum(1 for old, new in zip(investors, rescored) if old.fit_score != new.fit_score)
        if changed:
            self.repos["investors"].replace_all(rescored)
        return changed

    def mark_contacted(self, investor_id: str) -> tuple[Investor | None, list[ValidationError]]:
        return self.services["investors"].update(investor_id, {"contacted": True})

    def readiness(self, cash: float, monthly_burn: float) -> str:
        """Runway and pipeline readout for a cash position."""
        months = calculate_runway(cash, monthly_burn)
        urgency = runway_urgency(months)
        rounds = self.live("rounds")
        kpis = round_kpis(rounds)
        investors = self.records("investors")
        strong = sum(1 for i in investors if i.fit_score >= BASE_FIT + FIT_BONUS)

        if urgency == "critical":
            recommendation = "Raise a bridge or cut burn immediately."
        elif urgency == "warning":
            recommendation = "Start outreach now; fundraising takes 3-6 months."
        else:
            recommendation = "Runway is healthy. Build traction before the next raise."

        lines = [
            "Funding Readiness",
            rule(35),
            f"• Runway: {months} months ({urgency.upper()})",
            f"• {len(rounds)} active rounds, {kpis['percent_raised']}% of target raised",
            f"• {len(investors)} investors tracked, {strong} strong fits",
            f"• {sum(1 for i in investors if i.contacted)} contacted",
            f"• Recommendation: {recommendation}",
        ]
        return "\n".join(lines)

    def advisory(self) -> str:
        rounds = self.live("rounds")
        investors = self.records("investors")
        kpis = round_kpis(rounds)
        lines = [
            "Funding Summary",
            rule(35),
            f"• {len(rounds)} rounds, {kpis['closed']} closed, {kpis['pitching']} pitching",
            f"• Raised ${kpis['raised']:,.0f} of ${kpis['target']:,.0f} ({kpis['percent_raised']}%)",
            f"• {len(investors)} investors, avg fit {average(investors, 'fit_score')}",
        ]
        return "\n".join(lines)

    def report(self) -> TextReport:
        rounds = self.live("rounds")
        kpis = round_kpis(rounds)
        blocks = [
            f"{r.name} ({r.stage}) — {r.status}\n"
            f"  Target: ${r.target:,.0f} | Raised: ${r.raised:,.0f} | "
            f"Dilution: {self.round_dilution(r):.1f}%\n"
            f"  Investors: {', '.join(r.investors) or '—'}"
            for r in rounds
        ]
        return TextReport(
            title="Funding Report",
            summary=(
                f"Rounds: {len(rounds)} | Raised: ${kpis['raised']:,.0f} | "
                f"Investors: {len(self.records('investors'))}"
            ),
            blocks=blocks,
        )
