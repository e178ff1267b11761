from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

STOCK_DATA_KEY = "stockTrackerData"
FOLLOWED_STOCKS_KEY = "followedStocks"


class KeyValueStore(Protocol):
    def save(self, key: str, value: Any) -> None: ...

    def load(self, key: str) -> Any | None: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, str] = {}

    def save(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, separators=(",", ":"))
        with self._lock:
            self._items[key] = encoded

    def load(self, key: str) -> Any | None:
        with self._lock:
            raw = self._items.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def clear(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class SqliteStore:
    """JSON values keyed by name in a single sqlite table."""

    def __init__(self, db_path: str = "logs/stock_tracker.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._bootstrap()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _bootstrap(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tracker_records (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def save(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, separators=(",", ":"))
        updated_at = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tracker_records (key, value_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value_json = excluded.value_json,
                    updated_at = excluded.updated_at
                """,
                (key, encoded, updated_at),
            )

    def load(self, key: str) -> Any | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value_json FROM tracker_records WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def clear(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM tracker_records WHERE key = ?", (key,))
