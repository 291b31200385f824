"""
Export component - Data models.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

ExportFormat = Literal["text", "csv", "json"]

CONTENT_TYPES: dict[str, str] = {
    "text": "text/plain",
    "csv": "text/csv",
    "json": "application/json",
}

EXTENSIONS: dict[str, str] = {
    "text": "txt",
    "csv": "csv",
    "json": "json",
}


@dataclass(frozen=True)
class Column:
    """One CSV column: header text plus the field (or callable) producing the cell."""

    header: str
    field: str
    render: Callable[[Any], Any] | None = None


@dataclass
class TextReport:
    """A plain-text report: title, one summary line, record blocks."""

    title: str
    summary: str
    blocks: Sequence[str] = field(default_factory=list)
    empty_message: str = ""


@dataclass
class ExportOutput:
    """In-memory export payload ready for a download layer."""

    filename: str
    content_type: str
    content: str

    @property
    def payload(self) -> bytes:
        return self.content.encode("utf-8")
