"""SQLite implementation of the state repository."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any

from ..contracts import SessionState
from .repository import StateRepository

_STATE_KEY = "session"


class SQLiteStateRepository(StateRepository):
    """Persist session state as a JSON document in SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Repository API
    async def load_state(self) -> SessionState | None:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT value FROM kv_state WHERE key = ?", _STATE_KEY
        )
        if not row:
            return None
        return SessionState.model_validate_json(row["value"])

    async def save_state(self, state: SessionState) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO kv_state (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            _STATE_KEY,
            state.model_dump_json(),
        )

    async def clear_state(self) -> None:
        await asyncio.to_thread(
            self._execute, "DELETE FROM kv_state WHERE key = ?", _STATE_KEY
        )
