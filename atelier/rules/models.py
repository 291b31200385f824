from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class StoreRules(BaseModel):
    backend: Literal["memory", "local", "cloud"] = "local"
    data_dir: str = "./data/store"
    remote_db_path: str | None = None
    user_id: str | None = None
    auto_flush: bool = False


class MutationRules(BaseModel):
    default_score: int = Field(default=50, ge=0, le=100)
    clamp_scores: bool = True
    copy_suffix: str = " (Copy)"


class ExportRules(BaseModel):
    date_format: str = "%b %d"
    list_separator: str = ";"
    rule_width: int = Field(default=40, ge=1)


class Rules(BaseModel):
    project: ProjectRules
    store: StoreRules = Field(default_factory=StoreRules)
    mutations: MutationRules = Field(default_factory=MutationRules)
    export: ExportRules = Field(default_factory=ExportRules)


def default_rules() -> Rules:
    """Rules used when no rules file is configured."""
    return Rules(project=ProjectRules(slug="atelier", rules_version="1"))
