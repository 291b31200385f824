"""
Export component - Plain text, CSV and JSON exports.

Shell Layer - names the payload and stamps the generation time.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from atelier.core.ports.time import TimePort
from atelier.rules.models import ExportRules

from ._impl import export_filename, to_csv, to_json, to_text
from .models import CONTENT_TYPES, EXTENSIONS, Column, ExportOutput, TextReport


@dataclass
class CsvExportInput:
    """Input for a CSV export."""

    prefix: str
    records: Sequence[Any]
    columns: Sequence[Column] = field(default_factory=list)


@dataclass
class JsonExportInput:
    """Input for a JSON export (a collection or a whole-page backup)."""

    prefix: str
    payload: Any


@dataclass
class TextExportInput:
    """Input for a plain-text report export."""

    prefix: str
    report: TextReport


def _output(fmt: str, prefix: str, content: str, time: TimePort) -> ExportOutput:
    return ExportOutput(
        filename=export_filename(prefix, EXTENSIONS[fmt], time.now_utc()),
        content_type=CONTENT_TYPES[fmt],
        content=content,
    )


def run_csv(inp: CsvExportInput, time: TimePort, settings: ExportRules) -> ExportOutput:
    content = to_csv(inp.records, inp.columns, list_separator=settings.list_separator)
    return _output("csv", inp.prefix, content, time)


def run_json(inp: JsonExportInput, time: TimePort) -> ExportOutput:
    return _output("json", inp.prefix, to_json(inp.payload), time)


def run_text(inp: TextExportInput, time: TimePort, settings: ExportRules) -> ExportOutput:
    content = to_text(inp.report, time.now_utc(), rule_width=settings.rule_width)
    return _output("text", inp.prefix, content, time)


def run(
    inp: CsvExportInput | JsonExportInput | TextExportInput,
    *,
    time: TimePort,
    settings: ExportRules | None = None,
) -> ExportOutput:
    settings = settings or ExportRules()

    if isinstance(inp, CsvExportInput):
        return run_csv(inp, time, settings)

    elif isinstance(inp, JsonExportInput):
        return run_json(inp, time)

    elif isinstance(inp, TextExportInput):
        return run_text(inp, time, settings)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
