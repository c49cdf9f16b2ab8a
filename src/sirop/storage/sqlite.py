"""SQLite blob store.

Stores values in a single key/value table. Zero configuration required.
Good for development and single-process production scenarios.

Usage:
    blob = SQLiteBlobStore("db.sqlite3")

    # Or in-memory
    blob = SQLiteBlobStore(":memory:")
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sirop.errors import StorageError


class SQLiteBlobStore:
    """BlobStore over a SQLite database file.

    One connection is shared between threads and serialized with a lock.

    Args:
        path: Database file path, or ":memory:" for an in-memory database.
    """

    def __init__(self, path: str = ":memory:"):
        self._path = path
        self._lock = threading.RLock()
        try:
            self._conn: sqlite3.Connection | None = sqlite3.connect(path, check_same_thread=False)
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                )
                """
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open blob store at {path}: {e}") from e

    @property
    def path(self) -> str:
        return self._path

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection under the lock, translating sqlite errors."""
        if self._conn is None:
            raise StorageError(f"Blob store at {self._path} is closed")
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StorageError(f"Blob store failure at {self._path}: {e}") from e

    def get(self, key: str) -> bytes | None:
        with self._cursor() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else bytes(row[0])

    def set(self, key: str, value: bytes) -> None:
        with self._cursor() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, sqlite3.Binary(value)),
            )
            conn.commit()

    def delete(self, key: str) -> bool:
        with self._cursor() as conn:
            cursor = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        return cursor.rowcount > 0

    def clear(self) -> None:
        with self._cursor() as conn:
            conn.execute("DELETE FROM kv")
            conn.commit()

    def count(self) -> int:
        with self._cursor() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM kv").fetchone()[0])

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
