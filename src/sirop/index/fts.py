"""SQLite FTS5 search index.

One FTS5 virtual table holds a column per defined field. Field definitions
live in a regular table so a reopened index knows its schema; a stable
integer reference per document key lives in another.

Query grammar is FTS5 MATCH syntax:
    title:monkey
    title:monkey AND players:2
    "leisure suit" OR tentacle

Usage:
    index = FTSSearchIndex("index.sqlite3")
    index.define_field("title", FieldOptions(boost=2.0))
    index.upsert("Game/1", {"id": 1, "_doc_key": "Game/1", "_domain": "Game", "title": "Loom"})
    hits = index.query_all(index.domain_query("Game", "title:loom"))
"""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from dataclasses import dataclass
from typing import Any

from sirop.errors import SearchIndexError
from sirop.index.models import (
    DOC_KEY_FIELD,
    DOMAIN_FIELD,
    ID_FIELD,
    FieldOptions,
    Hit,
)

logger = logging.getLogger(__name__)

_TABLE = "fts_documents"
_REBUILD_TABLE = "fts_documents_rebuild"
_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Names FTS5 reserves as hidden columns or that clash with the table itself
_FORBIDDEN_NAMES = {"rank", "rowid", "oid", "_rowid_", _TABLE}

_DEFAULT_FIELDS: tuple[tuple[str, FieldOptions], ...] = (
    (DOC_KEY_FIELD, FieldOptions(searchable=False)),
    (DOMAIN_FIELD, FieldOptions()),
    (ID_FIELD, FieldOptions()),
)


def _fts_value(value: Any) -> str | None:
    """Flatten an index document value into FTS column text."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        parts = [_fts_value(v) for v in value]
        return " ".join(p for p in parts if p is not None)
    return str(value)


@dataclass(frozen=True, slots=True)
class FTSQuery:
    """FTS query expression.

    Attributes:
        domain: Exact _domain value documents must have, or None for any.
        match: FTS5 MATCH expression, or None to match every document.
    """

    domain: str | None = None
    match: str | None = None


class FTSSearchIndex:
    """SearchIndex backed by a SQLite FTS5 virtual table.

    Args:
        path: Database file path, or ":memory:" for an in-memory index.
    """

    def __init__(self, path: str = ":memory:"):
        self._path = path
        self._lock = threading.RLock()
        self._fields: dict[str, FieldOptions] = {}
        try:
            self._conn: sqlite3.Connection | None = sqlite3.connect(
                path, check_same_thread=False, isolation_level=None
            )
        except sqlite3.Error as e:
            raise SearchIndexError(f"Failed to open search index at {path}: {e}") from e
        with self._transaction() as conn:
            self._create_tables(conn)

    @property
    def path(self) -> str:
        return self._path

    @property
    def fields(self) -> dict[str, FieldOptions]:
        """Defined fields in column order."""
        return dict(self._fields)

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block in one transaction under the lock, translating sqlite errors."""
        if self._conn is None:
            raise SearchIndexError(f"Search index at {self._path} is closed")
        with self._lock:
            conn = self._conn
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise SearchIndexError(f"Search index failure at {self._path}: {e}") from e
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        """Create bookkeeping tables and the FTS table, loading a persisted schema."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS fields (
                name TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                searchable INTEGER NOT NULL,
                boost REAL NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS docs (
                ref INTEGER PRIMARY KEY AUTOINCREMENT,
                doc_key TEXT NOT NULL UNIQUE
            )
            """
        )
        if not self._load_fields(conn):
            for name, options in _DEFAULT_FIELDS:
                self._insert_field(conn, name, options)
        conn.execute(self._create_fts_sql(_TABLE, self._fields))

    def _load_fields(self, conn: sqlite3.Connection) -> bool:
        """Replace the cached schema with the persisted one. False if none is stored."""
        rows = conn.execute(
            "SELECT name, searchable, boost FROM fields ORDER BY position"
        ).fetchall()
        self._fields = {
            name: FieldOptions(searchable=bool(searchable), boost=boost)
            for name, searchable, boost in rows
        }
        return bool(rows)

    def _insert_field(self, conn: sqlite3.Connection, name: str, options: FieldOptions) -> None:
        conn.execute(
            "INSERT INTO fields (name, position, searchable, boost) VALUES (?, ?, ?, ?)",
            (name, len(self._fields), int(options.searchable), options.boost),
        )
        self._fields[name] = options

    @staticmethod
    def _create_fts_sql(table: str, fields: Mapping[str, FieldOptions]) -> str:
        columns = ", ".join(
            name if options.searchable else f"{name} UNINDEXED" for name, options in fields.items()
        )
        return f"CREATE VIRTUAL TABLE IF NOT EXISTS {table} USING fts5({columns})"

    # Schema

    def define_field(self, name: str, options: FieldOptions) -> None:
        """Add a column for a new field, rebuilding the FTS table.

        Raises:
            ValueError: If name is not usable as an FTS5 column.
        """
        if not _FIELD_NAME.match(name) or name.lower() in _FORBIDDEN_NAMES:
            raise ValueError(f"{name!r} cannot be used as a search index field name")
        with self._lock:
            if name in self._fields:
                return
            with self._transaction() as conn:
                # Another connection may have added fields since this one loaded
                self._load_fields(conn)
                if name in self._fields:
                    return
                old_columns = ", ".join(self._fields)
                self._insert_field(conn, name, options)
                try:
                    conn.execute(self._create_fts_sql(_REBUILD_TABLE, self._fields))
                    conn.execute(
                        f"INSERT INTO {_REBUILD_TABLE} (rowid, {old_columns}) "
                        f"SELECT rowid, {old_columns} FROM {_TABLE}"
                    )
                    conn.execute(f"DROP TABLE {_TABLE}")
                    conn.execute(f"ALTER TABLE {_REBUILD_TABLE} RENAME TO {_TABLE}")
                except BaseException:
                    del self._fields[name]
                    raise
            logger.debug("Added index field %s (%d fields)", name, len(self._fields))

    def has_field(self, name: str) -> bool:
        return name in self._fields

    # Documents

    def upsert(self, key: str, document: Mapping[str, Any]) -> None:
        """Replace the document under key. Fields not in the schema are ignored."""
        with self._transaction() as conn:
            row = conn.execute("SELECT ref FROM docs WHERE doc_key = ?", (key,)).fetchone()
            if row is None:
                ref = conn.execute("INSERT INTO docs (doc_key) VALUES (?)", (key,)).lastrowid
            else:
                ref = row[0]
                conn.execute(f"DELETE FROM {_TABLE} WHERE rowid = ?", (ref,))

            names = list(self._fields)
            values = [
                key if name == DOC_KEY_FIELD else _fts_value(document.get(name)) for name in names
            ]
            placeholders = ", ".join("?" for _ in names)
            conn.execute(
                f"INSERT INTO {_TABLE} (rowid, {', '.join(names)}) VALUES (?, {placeholders})",
                (ref, *values),
            )

    def delete(self, key: str) -> bool:
        with self._transaction() as conn:
            row = conn.execute("SELECT ref FROM docs WHERE doc_key = ?", (key,)).fetchone()
            if row is None:
                return False
            conn.execute(f"DELETE FROM {_TABLE} WHERE rowid = ?", (row[0],))
            conn.execute("DELETE FROM docs WHERE ref = ?", (row[0],))
            return True

    def clear(self) -> None:
        with self._transaction() as conn:
            conn.execute(f"DELETE FROM {_TABLE}")
            conn.execute("DELETE FROM docs")

    def count(self) -> int:
        with self._transaction() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM docs").fetchone()[0])

    # Queries

    def domain_query(self, domain: str, clause: str | None = None) -> FTSQuery:
        """Scope an FTS5 expression to one domain.

        The domain is compared exactly, never tokenized: "Game" does not match
        documents of "Game_Archive".
        """
        if clause is None or not str(clause).strip():
            return FTSQuery(domain=domain)
        return FTSQuery(domain=domain, match=str(clause))

    def query_all(self, expression: FTSQuery | str, limit: int | None = None) -> list[Hit]:
        """Run a query, best hits first.

        A plain string is an unscoped FTS5 MATCH expression. Without a MATCH
        expression every hit scores 0.0. A clause naming a field that was never
        defined matches nothing.
        """
        if isinstance(expression, str):
            expression = FTSQuery(match=expression)

        conditions: list[str] = []
        params: list[Any] = []
        if expression.match is not None:
            weights = ", ".join(repr(float(options.boost)) for options in self._fields.values())
            score = f"-bm25({_TABLE}, {weights})"
            conditions.append(f"{_TABLE} MATCH ?")
            params.append(expression.match)
        else:
            score = "0.0"
        if expression.domain is not None:
            conditions.append(f"{DOMAIN_FIELD} = ?")
            params.append(expression.domain)
        where = f"WHERE {' AND '.join(conditions)} " if conditions else ""
        sql = (
            f"SELECT rowid, {score} AS score FROM {_TABLE} "
            f"{where}ORDER BY score DESC, rowid LIMIT ?"
        )
        try:
            with self._transaction() as conn:
                rows = conn.execute(sql, (*params, -1 if limit is None else limit)).fetchall()
        except SearchIndexError as e:
            if isinstance(e.__cause__, sqlite3.OperationalError) and "no such column" in str(
                e.__cause__
            ):
                logger.debug("Query %r names an undefined field: %s", expression, e.__cause__)
                return []
            raise
        return [Hit(reference=rowid, score=float(score)) for rowid, score in rows]

    def resolve(self, reference: int) -> str | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT doc_key FROM docs WHERE ref = ?", (reference,)).fetchone()
        return None if row is None else row[0]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
