# src/pocket_scheduler/storage/medium.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class MediumFullError(OSError):
    """Raised by a medium when a write would exceed its quota."""


class MemoryMedium:
    """
    Process-local key-value medium (a dict).

    `quota_chars` mimics a browser storage quota: a write that would push the total
    stored size over the quota raises MediumFullError and changes nothing.
    """

    def __init__(self, *, quota_chars: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._quota = quota_chars
        self._lock = threading.Lock()

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("medium values must be str")
        with self._lock:
            if self._quota is not None:
                used = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
                if used + len(key) + len(value) > self._quota:
                    raise MediumFullError(f"quota of {self._quota} chars exceeded writing {key!r}")
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class SqliteMedium:
    """
    SQLite-backed key-value medium: one `kv` table, one row per key.

    Thread-safety:
    - each method opens its own SQLite connection
    - each write is a single transaction, so a failed write leaves the old value in place
    """

    def __init__(self, db_path: str | Path = "scheduler.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteMedium ready db=%s", self._db_path)

    @property
    def path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- medium API ----

    def read(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = cur.fetchone()
            return str(row["value"]) if row is not None else None
        finally:
            conn.close()

    def write(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("medium values must be str")
        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, time.time()),
                )
            logger.debug("kv write key=%s size=%d", key, len(value))
        finally:
            conn.close()

    def remove(self, key: str) -> None:
        conn = self._get_conn()
        try:
            with conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT key FROM kv ORDER BY key")
            return [str(r["key"]) for r in cur.fetchall()]
        finally:
            conn.close()
