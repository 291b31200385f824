"""
Rules - YAML configuration validated by pydantic models.
"""

from .loader import RULES_ENV_VAR, load_rules, load_rules_from_env
from .models import ExportRules, MutationRules, ProjectRules, Rules, StoreRules, default_rules

__all__ = [
    "RULES_ENV_VAR",
    "ExportRules",
    "MutationRules",
    "ProjectRules",
    "Rules",
    "StoreRules",
    "default_rules",
    "load_rules",
    "load_rules_from_env",
]
