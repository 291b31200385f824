"""
Pages component - the studio dashboards.

Each page owns its store keys, view specs, cascade table, CSV columns,
reports and advisory summaries.
"""

from ._base import Cascade, CollectionDef, DashboardPage
from .business_intel import BusinessIntelligencePage, intelligence_summary
from .fashion_lab import FashionLabPage, avg_rating, days_until, ownership_total, pass_rate
from .funding import (
    FundingPage,
    calculate_dilution,
    calculate_runway,
    investor_fit,
    rbf_payment,
    rbf_payoff_months,
    runway_urgency,
    score_term_sheet,
)
from .problem_solution import ProblemSolutionPage, priority_matrix, solve_rate
from .prototype_vault import PrototypeVaultPage, avg_iterations

PAGES: dict[str, type[DashboardPage]] = {
    "business_intel": BusinessIntelligencePage,
    "problem_solution": ProblemSolutionPage,
    "prototype_vault": PrototypeVaultPage,
    "fashion_lab": FashionLabPage,
    "funding": FundingPage,
}

__all__ = [
    # Registry
    "PAGES",
    # Pages
    "BusinessIntelligencePage",
    "DashboardPage",
    "FashionLabPage",
    "FundingPage",
    "ProblemSolutionPage",
    "PrototypeVaultPage",
    # Definitions
    "Cascade",
    "CollectionDef",
    # Pure helpers
    "avg_iterations",
    "avg_rating",
    "calculate_dilution",
    "calculate_runway",
    "days_until",
    "intelligence_summary",
    "investor_fit",
    "ownership_total",
    "pass_rate",
    "priority_matrix",
    "rbf_payment",
    "rbf_payoff_months",
    "runway_urgency",
    "score_term_sheet",
    "solve_rate",
]
