"""
MutationService - create, update, delete and duplicate records.

Translates raw form values into whole-collection transforms.

Key behaviors:
- Create requires a non-blank title/name; other fields fall back to
  per-entity defaults (scores 50, first enumerated option, empty lists)
- Numeric input that does not parse is coerced to the field default
- Out-of-set enumerated values default on create, are rejected on update
- Update is a shallow merge by id; id and created_at never change
- Delete applies the entity's explicit cascade rules
- Duplicate gets a fresh id/timestamp, a suffixed title and reset progress
- Failed validation never writes the collection
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Generic, Literal, TypeVar, get_args, get_origin
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from atelier.components.collections.ports import CollectionRepoPort, IdSetRepoPort
from atelier.core.ports.time import TimePort
from atelier.domain.entities import Record
from atelier.rules.models import MutationRules

from .models import CascadeRule, EntityDef, FieldRule, ValidationError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
SCORE_RANGE = (0, 100)

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})


# --- Coercion Functions ---


def coerce_number(value: Any, default: float) -> float:
    """Parse a number; blank or unparseable input gives default."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int | float):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def coerce_int(value: Any, default: int) -> int:
    return math.floor(coerce_number(value, default) + 0.5)


def clamp(value: float, low: float | None, high: float | None) -> float:
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def coerce_tags(value: Any) -> list[str]:
    """Accept a list or a comma-separated string; blanks are dropped."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [str(item).strip() for item in items if str(item).strip()]


def coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def coerce_mapping(value: Any) -> dict[str, float]:
    """Keep entries whose values parse as numbers."""
    if not isinstance(value, Mapping):
        return {}
    result: dict[str, float] = {}
    for key, raw in value.items():
        number = coerce_number(raw, math.nan)
        if not math.isnan(number):
            result[str(key)] = number
    return result


def coerce_text_mapping(value: Any) -> dict[str, str]:
    """Keep entries with a non-blank key; values are stripped text."""
    if not isinstance(value, Mapping):
        return {}
    return {
        str(key).strip(): "" if raw is None else str(raw).strip()
        for key, raw in value.items()
        if str(key).strip()
    }


# --- Rule Inference ---


def infer_rule(name: str, annotation: Any) -> FieldRule:
    """Derive a FieldRule from a model field annotation."""
    origin = get_origin(annotation)
    if origin is Literal:
        return FieldRule(field=name, kind="choice", allowed_values=tuple(get_args(annotation)))
    if annotation is bool:
        return FieldRule(field=name, kind="flag")
    if annotation is int:
        return FieldRule(field=name, kind="integer")
    if annotation is float:
        return FieldRule(field=name, kind="number")
    if origin is list:
        return FieldRule(field=name, kind="tags")
    if origin is dict and get_args(annotation)[1:] == (str,):
        return FieldRule(field=name, kind="text_mapping")
    if origin is dict:
        return FieldRule(field=name, kind="mapping")
    return FieldRule(field=name, kind="text")


def field_rules(entity: EntityDef[Any]) -> dict[str, FieldRule]:
    """All mutable field rules for an entity: inferred, then overridden."""
    rules = {
        name: infer_rule(name, info.annotation)
        for name, info in entity.model.model_fields.items()
        if name not in IMMUTABLE_FIELDS
    }
    for override in entity.overrides:
        rules[override.field] = override
    title = rules.get(entity.title_field)
    if title is not None and not title.required:
        rules[entity.title_field] = FieldRule(field=entity.title_field, required=True)
    return rules


def field_default(entity: EntityDef[Any], rule: FieldRule, settings: MutationRules) -> Any:
    if rule.kind == "score":
        return settings.default_score
    info = entity.model.model_fields.get(rule.field)
    if info is None or info.is_required():
        return None
    return info.get_default(call_default_factory=True)


def coerce_value(rule: FieldRule, value: Any, default: Any, settings: MutationRules) -> Any:
    """Coerce one raw form value according to its rule."""
    if rule.kind == "choice":
        allowed = rule.allowed_values or ()
        return value if value in allowed else default
    if rule.kind == "score":
        number = coerce_int(value, default)
        if settings.clamp_scores:
            number = int(clamp(number, *SCORE_RANGE))
        return number
    if rule.kind == "integer":
        return int(clamp(coerce_int(value, default or 0), rule.min_value, rule.max_value))
    if rule.kind == "number":
        return clamp(coerce_number(value, default or 0), rule.min_value, rule.max_value)
    if rule.kind == "tags":
        return coerce_tags(value)
    if rule.kind == "flag":
        return coerce_flag(value)
    if rule.kind == "mapping":
        return coerce_mapping(value)
    if rule.kind == "text_mapping":
        return coerce_text_mapping(value)
    return "" if value is None else str(value).strip()


# --- Validation Functions ---


def _required_error(entity: EntityDef[Any], field_name: str) -> ValidationError:
    return ValidationError(
        code=f"{field_name}_required",
        message=f"{entity.name} {field_name} is required",
        field=field_name,
    )


def validate_create(entity: EntityDef[Any], values: Mapping[str, Any]) -> list[ValidationError]:
    """Required fields must be present and non-blank."""
    errors: list[ValidationError] = []
    for name, rule in field_rules(entity).items():
        if rule.required and not str(values.get(name) or "").strip():
            errors.append(_required_error(entity, name))
    return errors


def validate_patch(entity: EntityDef[Any], patch: Mapping[str, Any]) -> list[ValidationError]:
    """Reject immutable, unknown, blank-required and out-of-set fields."""
    errors: list[ValidationError] = []
    rules = field_rules(entity)

    for name, value in patch.items():
        if name in IMMUTABLE_FIELDS:
            errors.append(
                ValidationError(
                    code="immutable_field",
                    message=f"{name} cannot be changed",
                    field=name,
                )
            )
            continue

        rule = rules.get(name)
        if rule is None:
            errors.append(
                ValidationError(
                    code="unknown_field",
                    message=f"{entity.name} has no field '{name}'",
                    field=name,
                )
            )
            continue

        if rule.required and not str(value or "").strip():
            errors.append(_required_error(entity, name))
        elif rule.kind == "choice" and value not in (rule.allowed_values or ()):
            allowed = ", ".join(rule.allowed_values or ())
            errors.append(
                ValidationError(
                    code="invalid_choice",
                    message=f"{name} must be one of: {allowed}",
                    field=name,
                )
            )

    return errors


def _not_found(entity: EntityDef[Any], record_id: str) -> ValidationError:
    return ValidationError(
        code="record_not_found",
        message=f"{entity.name} with ID {record_id} not found",
    )


def _invalid_record(entity: EntityDef[Any], exc: PydanticValidationError) -> ValidationError:
    return ValidationError(
        code="invalid_record",
        message=f"{entity.name} failed validation: {exc.error_count()} error(s)",
    )


# --- Mutation Service ---


class MutationService(Generic[R]):
    """
    Mutation service for one entity collection.

    Every successful mutation writes the whole collection back once.
    """

    def __init__(
        self,
        entity: EntityDef[R],
        repo: CollectionRepoPort[R],
        time: TimePort,
        *,
        cascades: Sequence[CascadeRule] = (),
        favorites: IdSetRepoPort | None = None,
        settings: MutationRules | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize service."""
        self.entity = entity
        self._repo = repo
        self._time = time
        self._cascades = tuple(cascades)
        self._favorites = favorites
        self._settings = settings or MutationRules()
        self._id_factory = id_factory or (lambda: str(uuid4()))

    def _now(self) -> str:
        return self._time.now_utc().isoformat()

    def get_all(self) -> list[R]:
        return self._repo.get_all()

    def get_by_id(self, record_id: str) -> R | None:
        return next((r for r in self._repo.get_all() if r.id == record_id), None)

    def _insert(self, records: list[R], record: R) -> list[R]:
        return [record, *records] if self.entity.prepend else [*records, record]

    def build(self, values: Mapping[str, Any]) -> tuple[R | None, list[ValidationError]]:
        """Build a new record from form values without persisting it."""
        errors = validate_create(self.entity, values)
        if errors:
            return None, errors

        data: dict[str, Any] = {}
        for name, rule in field_rules(self.entity).items():
            default = field_default(self.entity, rule, self._settings)
            if name in values:
                data[name] = coerce_value(rule, values[name], default, self._settings)
            elif rule.kind == "score":
                data[name] = default

        data["id"] = self._id_factory()
        data["created_at"] = self._now()

        try:
            return self.entity.model.model_validate(data), []
        except PydanticValidationError as e:
            return None, [_invalid_record(self.entity, e)]

    def create(self, values: Mapping[str, Any]) -> tuple[R | None, list[ValidationError]]:
        """
        Create a new record.

        Returns:
            Tuple of (record, errors). Record is None if validation fails.
        """
        record, errors = self.build(values)
        if record is None:
            logger.debug("Rejected %s create: %s", self.entity.name, [e.code for e in errors])
            return None, errors

        self._repo.replace_all(self._insert(self._repo.get_all(), record))
        return record, []

    def update(
        self, record_id: str, patch: Mapping[str, Any]
    ) -> tuple[R | None, list[ValidationError]]:
        """
        Shallow-merge patch into a record.

        Returns:
            Tuple of (record, errors). Record is None if not found or validation fails.
        """
        records = self._repo.get_all()
        current = next((r for r in records if r.id == record_id), None)
        if current is None:
            return None, [_not_found(self.entity, record_id)]

        errors = validate_patch(self.entity, patch)
        if errors:
            return None, errors

        rules = field_rules(self.entity)
        merged = current.model_dump()
        for name, value in patch.items():
            merged[name] = coerce_value(rules[name], value, merged.get(name), self._settings)

        try:
            updated = self.entity.model.model_validate(merged)
        except PydanticValidationError as e:
            return None, [_invalid_record(self.entity, e)]

        self._repo.replace_all([updated if r.id == record_id else r for r in records])
        return updated, []

    def delete(self, record_id: str) -> tuple[dict[str, int] | None, list[ValidationError]]:
        """
        Delete a record and its cascaded children.

        Returns:
            Tuple of (cascaded counts per child key, errors).
        """
        records = self._repo.get_all()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return None, [_not_found(self.entity, record_id)]

        self._repo.replace_all(remaining)

        cascaded: dict[str, int] = {}
        for rule in self._cascades:
            children = rule.child.get_all()
            kept = [c for c in children if getattr(c, rule.foreign_key, None) != record_id]
            removed = len(children) - len(kept)
            if removed:
                rule.child.replace_all(kept)
            cascaded[rule.child.key] = removed

        if self._favorites is not None:
            self._favorites.discard(record_id)

        if any(cascaded.values()):
            logger.info(
                "Deleted %s %s with cascade %s", self.entity.name, record_id, cascaded
            )
        return cascaded, []

    def duplicate(self, record_id: str) -> tuple[R | None, list[ValidationError]]:
        """Copy a record with a fresh id/timestamp, suffixed title and reset progress."""
        records = self._repo.get_all()
        source = next((r for r in records if r.id == record_id), None)
        if source is None:
            return None, [_not_found(self.entity, record_id)]

        title = getattr(source, self.entity.title_field)
        update: dict[str, Any] = {
            **dict(self.entity.duplicate_reset),
            "id": self._id_factory(),
            "created_at": self._now(),
            self.entity.title_field: f"{title}{self._settings.copy_suffix}",
        }
        copy = source.model_copy(update=update, deep=True)

        self._repo.replace_all(self._insert(records, copy))
        return copy, []

    def set_archived(
        self, record_id: str, archived: bool = True
    ) -> tuple[R | None, list[ValidationError]]:
        """Move a record into (or out of) its terminal archive state."""
        target = self.entity.archive if archived else self.entity.restore
        if target is None:
            return None, [
                ValidationError(
                    code="archive_unsupported",
                    message=f"{self.entity.name} records cannot be archived",
                )
            ]
        field_name, value = target
        return self.update(record_id, {field_name: value})

    def increment(
        self, record_id: str, steps: Mapping[str, int]
    ) -> tuple[R | None, list[ValidationError]]:
        """Add steps to integer fields (e.g. version and iteration bumps)."""
        current = self.get_by_id(record_id)
        if current is None:
            return None, [_not_found(self.entity, record_id)]
        patch = {name: int(getattr(current, name, 0)) + step for name, step in steps.items()}
        return self.update(record_id, patch)

    def clear(self) -> int:
        """Remove every record. Returns the number removed."""
        count = len(self._repo.get_all())
        self._repo.replace_all([])
        return count
