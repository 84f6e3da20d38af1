from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from uthmhub.config.logger import get_logger

log = get_logger("storage")

SEMESTERS_KEY = "semesters"
STUDY_HISTORY_KEY = "study-history"
NICKNAME_KEY = "nickname"


class StorageError(Exception):
    pass


class Storage:
    """Local key-value store. Values are JSON documents; no validation happens here."""

    def __init__(self, db_path: str = "uthmhub.db") -> None:
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open {db_path}: {exc}") from exc
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS kv (
              key TEXT PRIMARY KEY,
              value TEXT NOT NULL,
              updated_at TEXT NOT NULL
            );
            """
        )
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def get_json(self, key: str, default: Any = None) -> Any:
        cur = self.conn.cursor()
        cur.execute("SELECT value FROM kv WHERE key=?", (key,))
        row = cur.fetchone()
        if not row:
            return default
        try:
            return json.loads(row["value"])
        except ValueError:
            log.warning("Ignoring malformed value stored under %r", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Value for {key!r} is not JSON serializable") from exc
        self.conn.execute(
            """INSERT INTO kv(key, value, updated_at) VALUES(?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value=excluded.value,
                   updated_at=excluded.updated_at""",
            (key, payload, now),
        )
        self.conn.commit()

    def delete(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv WHERE key=?", (key,))
        self.conn.commit()

    def keys(self) -> list[str]:
        cur = self.conn.cursor()
        cur.execute("SELECT key FROM kv ORDER BY key")
        return [row["key"] for row in cur.fetchall()]
