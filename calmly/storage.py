"""Key-value storage. Every feature keeps its data under a per-user key.

The SQLite store keeps a single ``kv`` table; values are plain strings
(JSON blobs for anything structured). Failures surface as
:class:`~calmly.errors.StorageError`; the JSON helpers below turn those
into "absent" on read and ``False`` on write so screens never block on
storage.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

from calmly.config import get_db_path as _config_get_db_path
from calmly.errors import StorageError

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""

# Global key holding the logged-in user.
CURRENT_USER_KEY = "user"

# Per-user key prefixes.
PROGRAM_DATE = "programDate"
COMPLETED_TASKS = "completedTasks"
CHALLENGE_DATE = "challengeDate"
CHALLENGE_COMPLETED = "challengeCompleted"
COMPLETED_EXERCISES = "completedExercises"
HISTORY = "history"
JOURNAL_ENTRIES = "journalEntries"
NOTES = "notes"
SELECTED_MOOD = "selectedMood"
SOBER_CATEGORIES = "soberCategories"
CHAT_HISTORY = "chatHistory"


def user_key(prefix: str, username: str) -> str:
    """Namespace a key to one user, e.g. ``notes_alice``."""
    return f"{prefix}_{username}"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SqliteStore:
    """Key-value store on top of a single SQLite table."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.path = db_path or _get_db_path()
        try:
            self.conn = sqlite3.connect(str(self.path))
            self.conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise StorageError(f"Could not open {self.path}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            row = self.conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not read {key!r}: {exc}") from exc
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now().isoformat()
        try:
            self.conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, value, now),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not write {key!r}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not remove {key!r}: {exc}") from exc

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> SqliteStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _get_db_path() -> Path:
    """Return the database file path from config (or default)."""
    return _config_get_db_path()


def open_store(db_path: Optional[Path] = None) -> SqliteStore:
    """Open the on-disk store (convenience wrapper)."""
    return SqliteStore(db_path)


# ---------------------------------------------------------------------------
# Best-effort helpers
# ---------------------------------------------------------------------------


def read_text(store: KeyValueStore, key: str) -> Optional[str]:
    """Read a raw value; a storage failure reads as absent."""
    try:
        return store.get(key)
    except StorageError:
        log.warning("Reading %s failed; treating it as empty.", key, exc_info=True)
        return None


def read_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    """Read and decode a JSON value; failures and bad JSON give ``default``."""
    raw = read_text(store, key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Stored value for %s is not valid JSON; ignoring it.", key)
        return default


def write_text(store: KeyValueStore, key: str, value: str) -> bool:
    """Write a raw value. Returns False (and logs) instead of raising."""
    try:
        store.set(key, value)
    except StorageError:
        log.warning("Writing %s failed.", key, exc_info=True)
        return False
    return True


def write_json(store: KeyValueStore, key: str, value: Any) -> bool:
    return write_text(store, key, json.dumps(value, default=str))


def remove_key(store: KeyValueStore, key: str) -> bool:
    try:
        store.remove(key)
    except StorageError:
        log.warning("Removing %s failed.", key, exc_info=True)
        return False
    return True
