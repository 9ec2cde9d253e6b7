"""
bettracker/store.py — Persistent key-value store (SQLite)
=========================================================
JSON values under string keys. The registry keeps one snapshot per entity
kind here, plus the seed version each snapshot was last merged with.

Schema: kv_store table
  key         TEXT PRIMARY KEY
  value       TEXT NOT NULL      -- JSON document
  updated_at  TEXT NOT NULL      -- ISO 8601 UTC of last save

Reads are forgiving: a missing key, a missing DB file or a value that is not
valid JSON all come back as None (the last one logged). Writes are not:
any sqlite3 / OS failure is raised as PersistenceWriteError so the caller can
report it.

Path: BETTRACKER_DB_PATH env var, else data/bettracker.db at the repo root.

DO NOT add registry or Streamlit imports to this file.
"""

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH = os.path.join(
    os.path.dirname(__file__), "..", "data", "bettracker.db"
)

_SCHEMA_SQL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous = NORMAL;

CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""


class PersistenceWriteError(Exception):
    """A save did not reach disk. The in-memory state is still valid."""


# ---------------------------------------------------------------------------
# Connection management
# ---------------------------------------------------------------------------

def _db_path() -> str:
    return os.environ.get("BETTRACKER_DB_PATH", _DEFAULT_DB_PATH)


def get_conn(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open a WAL-mode connection with Row factory. Caller closes it."""
    path = db_path or _db_path()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    return conn


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SqliteStore:
    """
    Key → JSON value store backed by a single SQLite file.

    Connections are opened and closed per call; the object holds only the
    path, so several stores (or processes) can point at one file.

    Args:
        db_path: Override DB file path (tests pass a tmp_path file).
    """

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or _db_path()
        self._initialized = False

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        if not self._initialized:
            conn.executescript(_SCHEMA_SQL)
            self._initialized = True

    def load(self, key: str) -> Any:
        """
        Return the stored value for key, or None when absent or unreadable.

        A DB that cannot be opened is logged and treated as empty; the
        registry then falls back to seed data.
        """
        try:
            conn = get_conn(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            logger.error("Cannot open store %s: %s", self.db_path, exc)
            return None
        try:
            self._ensure_schema(conn)
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Store read failed for %r: %s", key, exc)
            return None
        finally:
            conn.close()

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except ValueError as exc:
            logger.warning("Stored value for %r is not valid JSON, ignoring: %s", key, exc)
            return None

    def save(self, key: str, value: Any) -> None:
        """
        Write value (JSON-serializable) under key, replacing any previous value.

        Raises:
            PersistenceWriteError: serialization or the SQLite write failed.
        """
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceWriteError(f"Value for {key!r} is not JSON-serializable: {exc}") from exc

        now = datetime.now(timezone.utc).isoformat()
        try:
            conn = get_conn(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceWriteError(f"Cannot open store {self.db_path}: {exc}") from exc
        try:
            self._ensure_schema(conn)
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, payload, now),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceWriteError(f"Write failed for {key!r}: {exc}") from exc
        finally:
            conn.close()

    def delete(self, key: str) -> bool:
        """Remove key. Returns True if a row was deleted."""
        try:
            conn = get_conn(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceWriteError(f"Cannot open store {self.db_path}: {exc}") from exc
        try:
            self._ensure_schema(conn)
            cur = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
            return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise PersistenceWriteError(f"Delete failed for {key!r}: {exc}") from exc
        finally:
            conn.close()

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        conn = get_conn(self.db_path)
        try:
            self._ensure_schema(conn)
            rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
            return [row["key"] for row in rows]
        finally:
            conn.close()
