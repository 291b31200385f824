"""
Time port.

Record timestamps are ISO-8601 UTC strings; the port supplies "now"
so mutations and reports stay deterministic under test.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...
