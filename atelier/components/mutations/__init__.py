"""
Mutations component - Form/Mutation Layer.

Validates minimal required fields and produces new or updated records
with generated identifiers and timestamps, applying explicit cascades
on delete.
"""

from ._impl import (
    MutationService,
    coerce_flag,
    coerce_int,
    coerce_mapping,
    coerce_number,
    coerce_tags,
    coerce_text_mapping,
    field_rules,
    validate_create,
    validate_patch,
)
from .component import (
    run,
    run_archive,
    run_create,
    run_delete,
    run_duplicate,
    run_update,
)
from .models import (
    ArchiveRecordInput,
    CascadeRule,
    CreateRecordInput,
    DeleteRecordInput,
    DuplicateRecordInput,
    EntityDef,
    FieldRule,
    MutationOutput,
    UpdateRecordInput,
    ValidationError,
)

__all__ = [
    # Entry points
    "run",
    "run_archive",
    "run_create",
    "run_delete",
    "run_duplicate",
    "run_update",
    # Input models
    "ArchiveRecordInput",
    "CreateRecordInput",
    "DeleteRecordInput",
    "DuplicateRecordInput",
    "UpdateRecordInput",
    # Output models
    "MutationOutput",
    "ValidationError",
    # Definitions
    "CascadeRule",
    "EntityDef",
    "FieldRule",
    # Service
    "MutationService",
    # Pure helpers
    "coerce_flag",
    "coerce_int",
    "coerce_mapping",
    "coerce_number",
    "coerce_tags",
    "coerce_text_mapping",
    "field_rules",
    "validate_create",
    "validate_patch",
]
