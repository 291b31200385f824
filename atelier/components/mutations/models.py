"""
Mutations component - Data models.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from atelier.components.collections.ports import CollectionRepoPort
from atelier.domain.entities import Record

R = TypeVar("R", bound=Record)

FieldKind = Literal[
    "text", "choice", "integer", "number", "score", "tags", "flag", "mapping", "text_mapping"
]


@dataclass(frozen=True)
class FieldRule:
    """
    How one form field is coerced and validated.

    score fields are integers in 0-100 (clamped when configured);
    integer/number fields honor min_value/max_value when set.
    """

    field: str
    kind: FieldKind = "text"
    required: bool = False
    allowed_values: tuple[str, ...] | None = None
    min_value: float | None = None
    max_value: float | None = None


@dataclass
class ValidationError:
    """Validation error with actionable message."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class EntityDef(Generic[R]):
    """
    Mutation rules for one entity type.

    Attributes:
        name: Display name used in error messages
        model: Pydantic record class
        title_field: Required text field ("title" or "name")
        overrides: Rules replacing the ones inferred from the model
        duplicate_reset: Field values applied to duplicates
        archive: (field, value) marking the terminal archive state
        restore: (field, value) applied when leaving the archive
        prepend: New records go to the front of the collection
    """

    name: str
    model: type[R]
    title_field: str = "title"
    overrides: tuple[FieldRule, ...] = ()
    duplicate_reset: Mapping[str, Any] = field(default_factory=dict)
    archive: tuple[str, Any] | None = None
    restore: tuple[str, Any] | None = None
    prepend: bool = True


@dataclass(frozen=True)
class CascadeRule:
    """Delete children whose foreign_key equals the deleted parent's id."""

    child: CollectionRepoPort
    foreign_key: str


# --- Component Inputs ---


@dataclass
class CreateRecordInput:
    """Input for creating a record from raw form values."""

    values: Mapping[str, Any]


@dataclass
class UpdateRecordInput:
    """Input for patching a record. Unspecified fields are preserved."""

    record_id: str
    patch: Mapping[str, Any]


@dataclass
class DeleteRecordInput:
    """Input for deleting a record (and its cascaded children)."""

    record_id: str


@dataclass
class DuplicateRecordInput:
    """Input for duplicating a record."""

    record_id: str


@dataclass
class ArchiveRecordInput:
    """Input for archiving (or restoring) a record."""

    record_id: str
    archived: bool = True


# --- Component Outputs ---


@dataclass
class MutationOutput(Generic[R]):
    """Output from a mutation."""

    record: R | None
    errors: list[ValidationError]
    success: bool
    cascaded: dict[str, int] = field(default_factory=dict)
