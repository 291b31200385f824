"""
Export Formatter - plain text, CSV and JSON payloads.

Functional Core - produces strings only; writing files or triggering
downloads is the caller's concern.

Key behaviors:
- CSV: header row first, one row per record, comma-delimited; cells with
  commas, quotes or newlines are double-quoted with "" escaping
- JSON: full-fidelity records (camelCase aliases), 2-space indent
- Text: title, rule line, summary, blank-line separated blocks, footer
- Output is deterministic for the same content and ordering
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from .models import Column, TextReport

PLACEHOLDER = "—"


def format_date(value: str | None, fmt: str = "%b %d") -> str:
    """Short display date for an ISO timestamp; blank or invalid gives a dash."""
    if not value:
        return PLACEHOLDER
    try:
        return datetime.fromisoformat(value).strftime(fmt)
    except ValueError:
        return PLACEHOLDER


def _field_value(record: Any, field_name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field_name)
    return getattr(record, field_name, None)


def format_cell(value: Any, list_separator: str = ";") -> str:
    """Render one cell the way the dashboards print values."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, list | tuple):
        return list_separator.join(format_cell(v, list_separator) for v in value)
    if isinstance(value, Mapping):
        return list_separator.join(
            f"{k}:{format_cell(v, list_separator)}" for k, v in value.items()
        )
    return str(value)


def to_csv(
    records: Sequence[Any],
    columns: Sequence[Column],
    *,
    list_separator: str = ";",
) -> str:
    """Serialize records to CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)

    writer.writerow([c.header for c in columns])
    for record in records:
        row = []
        for column in columns:
            value = (
                column.render(record)
                if column.render is not None
                else _field_value(record, column.field)
            )
            row.append(format_cell(value, list_separator))
        writer.writerow(row)

    content = buffer.getvalue()
    return content[:-1] if content.endswith("\n") else content


def jsonable(payload: Any) -> Any:
    """Convert records (and containers of records) to plain JSON data."""
    if isinstance(payload, BaseModel):
        return payload.model_dump(by_alias=True)
    if isinstance(payload, Mapping):
        return {str(k): jsonable(v) for k, v in payload.items()}
    if isinstance(payload, list | tuple):
        return [jsonable(v) for v in payload]
    return payload


def to_json(payload: Any) -> str:
    """Pretty-printed JSON with 2-space indent."""
    return json.dumps(jsonable(payload), indent=2, ensure_ascii=False)


def to_text(report: TextReport, generated: datetime, *, rule_width: int = 40) -> str:
    """Render a plain-text report with fixed section headers."""
    blocks = list(report.blocks)
    body = "\n\n".join(blocks) if blocks else report.empty_message

    lines = [report.title, "=" * rule_width, report.summary, ""]
    if body:
        lines.extend([body, ""])
    lines.append(f"Generated: {generated.strftime('%Y-%m-%d')}")
    return "\n".join(lines)


def export_filename(prefix: str, extension: str, now: datetime) -> str:
    """<prefix>-<epoch millis>.<ext>, as the dashboards name downloads."""
    millis = int(now.timestamp() * 1000)
    return f"{prefix}-{millis}.{extension}"
