"""
Export component - Export Formatter.

Serializes collections and aggregates into plain text, CSV or JSON.
"""

from ._impl import (
    PLACEHOLDER,
    export_filename,
    format_cell,
    format_date,
    jsonable,
    to_csv,
    to_json,
    to_text,
)
from .component import (
    CsvExportInput,
    JsonExportInput,
    TextExportInput,
    run,
    run_csv,
    run_json,
    run_text,
)
from .models import CONTENT_TYPES, Column, ExportFormat, ExportOutput, TextReport

__all__ = [
    # Entry points
    "run",
    "run_csv",
    "run_json",
    "run_text",
    # Input models
    "Column",
    "CsvExportInput",
    "JsonExportInput",
    "TextExportInput",
    "TextReport",
    # Output models
    "ExportFormat",
    "ExportOutput",
    # Constants
    "CONTENT_TYPES",
    "PLACEHOLDER",
    # Pure helpers
    "export_filename",
    "format_cell",
    "format_date",
    "jsonable",
    "to_csv",
    "to_json",
    "to_text",
]
