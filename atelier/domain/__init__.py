"""
Domain records for the studio dashboards.
"""

from .entities import (
    Alert,
    Challenge,
    Collaborator,
    Comment,
    Design,
    FitTest,
    FundingRound,
    Investor,
    IPRecord,
    Lineup,
    Material,
    Prototype,
    Record,
    Signal,
    Solution,
    Task,
    TechPack,
    TrendItem,
)

__all__ = [
    "Alert",
    "Challenge",
    "Collaborator",
    "Comment",
    "Design",
    "FitTest",
    "FundingRound",
    "IPRecord",
    "Investor",
    "Lineup",
    "Material",
    "Prototype",
    "Record",
    "Signal",
    "Solution",
    "Task",
    "TechPack",
    "TrendItem",
]
