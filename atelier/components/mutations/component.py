"""
Mutations component - Record create/update/delete/duplicate.

Shell Layer - wraps MutationService results into component outputs.
"""

from __future__ import annotations

from ._impl import MutationService
from .models import (
    ArchiveRecordInput,
    CreateRecordInput,
    DeleteRecordInput,
    DuplicateRecordInput,
    MutationOutput,
    UpdateRecordInput,
)


def run_create(inp: CreateRecordInput, service: MutationService) -> MutationOutput:
    """Create a new record."""
    record, errors = service.create(inp.values)
    return MutationOutput(record=record, errors=errors, success=record is not None)


def run_update(inp: UpdateRecordInput, service: MutationService) -> MutationOutput:
    """Patch an existing record."""
    record, errors = service.update(inp.record_id, inp.patch)
    return MutationOutput(record=record, errors=errors, success=record is not None)


def run_delete(inp: DeleteRecordInput, service: MutationService) -> MutationOutput:
    """Delete a record and its cascaded children."""
    cascaded, errors = service.delete(inp.record_id)
    return MutationOutput(
        record=None,
        errors=errors,
        success=cascaded is not None,
        cascaded=cascaded or {},
    )


def run_duplicate(inp: DuplicateRecordInput, service: MutationService) -> MutationOutput:
    """Duplicate a record."""
    record, errors = service.duplicate(inp.record_id)
    return MutationOutput(record=record, errors=errors, success=record is not None)


def run_archive(inp: ArchiveRecordInput, service: MutationService) -> MutationOutput:
    """Archive or restore a record."""
    record, errors = service.set_archived(inp.record_id, inp.archived)
    return MutationOutput(record=record, errors=errors, success=record is not None)


def run(
    inp: CreateRecordInput
    | UpdateRecordInput
    | DeleteRecordInput
    | DuplicateRecordInput
    | ArchiveRecordInput,
    *,
    service: MutationService,
) -> MutationOutput:
    if isinstance(inp, CreateRecordInput):
        return run_create(inp, service)

    elif isinstance(inp, UpdateRecordInput):
        return run_update(inp, service)

    elif isinstance(inp, DeleteRecordInput):
        return run_delete(inp, service)

    elif isinstance(inp, DuplicateRecordInput):
        return run_duplicate(inp, service)

    elif isinstance(inp, ArchiveRecordInput):
        return run_archive(inp, service)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
