"""
SQLite Remote Store Adapter.

Implements RemoteStorePort on a ``dashboard_data`` table keyed by
(user_id, module_key), one JSON document per row.
Designed to be Postgres-compatible (uses standard upsert SQL).
"""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from typing import Any

from atelier.core.ports.store import StoreUnavailableError

SCHEMA = """
CREATE TABLE IF NOT EXISTS dashboard_data (
    user_id TEXT NOT NULL,
    module_key TEXT NOT NULL,
    data TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (user_id, module_key)
);
"""


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class SQLiteRemoteStore:
    """SQLite implementation of RemoteStorePort."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        self._ensure_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreUnavailableError("*", str(e)) from e
        conn.row_factory = dict_factory
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def fetch(self, user_id: str, key: str) -> Any | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT data FROM dashboard_data WHERE user_id = ? AND module_key = ?",
                (user_id, key),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(key, str(e)) from e
        finally:
            if self._should_close():
                conn.close()

        if not row:
            return None
        data = row["data"] if isinstance(row, dict) else row[0]
        try:
            return json.loads(data)
        except ValueError as e:
            raise StoreUnavailableError(key, f"corrupt row: {e}") from e

    def upsert(self, user_id: str, key: str, value: Any) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO dashboard_data (user_id, module_key, data, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, module_key) DO UPDATE SET
                    data=excluded.data,
                    updated_at=excluded.updated_at
                """,
                (user_id, key, json.dumps(value), datetime.now(UTC).isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreUnavailableError(key, str(e)) from e
        finally:
            if self._should_close():
                conn.close()

    def list_keys(self, user_id: str) -> list[str]:
        """List module keys stored for a user."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT module_key FROM dashboard_data WHERE user_id = ? ORDER BY module_key",
                (user_id,),
            ).fetchall()
            return [r["module_key"] if isinstance(r, dict) else r[0] for r in rows]
        finally:
            if self._should_close():
                conn.close()
