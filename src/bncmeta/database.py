"""SQLite database layer for normalized corpus metadata.

Manages schema initialization, pragmas, parameterized row inserts and the
single transaction that spans a whole ingest batch.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from bncmeta.constants import (
    COUNT_COLUMNS,
    LINKS_TABLE,
    PEOPLE_TABLE,
    PERSON_ATTRIBUTES,
    SENTENCES_TABLE,
    SETTING_ATTRIBUTES,
    SETTINGS_TABLE,
    TABLES,
    WORDS_TABLE,
)
from bncmeta.normalizer import NormalizedDocument

logger = logging.getLogger(__name__)


def _columns(names: Iterable[str], decl: str = "TEXT") -> str:
    return "".join(f"    {name} {decl},\n" for name in names)


SCHEMA_SQL = f"""
-- Declared (or referenced) settings, one per document
CREATE TABLE IF NOT EXISTS {SETTINGS_TABLE} (
    doc TEXT NOT NULL,
    setting TEXT NOT NULL,
    n TEXT,
{_columns(SETTING_ATTRIBUTES)}    PRIMARY KEY (doc, setting)
);

-- Declared (or referenced) people, one per document
CREATE TABLE IF NOT EXISTS {PEOPLE_TABLE} (
    doc TEXT NOT NULL,
    person TEXT NOT NULL,
    n TEXT,
{_columns(PERSON_ATTRIBUTES)}    PRIMARY KEY (doc, person)
);

-- Participants listed in a setting's who attribute
CREATE TABLE IF NOT EXISTS {LINKS_TABLE} (
    doc TEXT NOT NULL,
    setting TEXT NOT NULL,
    person TEXT NOT NULL,
    PRIMARY KEY (doc, setting, person),
    FOREIGN KEY (doc, setting) REFERENCES {SETTINGS_TABLE}(doc, setting),
    FOREIGN KEY (doc, person) REFERENCES {PEOPLE_TABLE}(doc, person)
);

-- Per-sentence event counts (empty sentences are never stored)
CREATE TABLE IF NOT EXISTS {SENTENCES_TABLE} (
    doc TEXT NOT NULL,
    s TEXT NOT NULL,
    person TEXT NOT NULL,
    setting TEXT NOT NULL,
{_columns(COUNT_COLUMNS, "INTEGER NOT NULL DEFAULT 0")}    PRIMARY KEY (doc, s, person),
    FOREIGN KEY (doc, setting) REFERENCES {SETTINGS_TABLE}(doc, setting),
    FOREIGN KEY (doc, person) REFERENCES {PEOPLE_TABLE}(doc, person)
);

-- Word tags in sentence order
CREATE TABLE IF NOT EXISTS {WORDS_TABLE} (
    doc TEXT NOT NULL,
    s TEXT NOT NULL,
    person TEXT NOT NULL,
    position INTEGER NOT NULL,
    hw TEXT,
    c5 TEXT,
    pos TEXT,
    PRIMARY KEY (doc, s, person, position),
    FOREIGN KEY (doc, s, person) REFERENCES {SENTENCES_TABLE}(doc, s, person)
);

CREATE INDEX IF NOT EXISTS idx_sentences_setting ON {SENTENCES_TABLE}(doc, setting);
CREATE INDEX IF NOT EXISTS idx_words_hw ON {WORDS_TABLE}(hw);

-- Documents left out of the batch
CREATE TABLE IF NOT EXISTS _skipped_documents (
    skip_id INTEGER PRIMARY KEY AUTOINCREMENT,
    doc TEXT NOT NULL,
    file_path TEXT NOT NULL,
    reason TEXT NOT NULL,
    timestamp TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
"""


class Database:
    """SQLite database wrapper for the normalized tables.

    Usage:
        with Database("data/bnc.db") as db:
            with db.batch():
                db.emit(normalized)
            counts = db.get_table_counts()
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(
            self.db_path,
            autocommit=sqlite3.LEGACY_TRANSACTION_CONTROL,
        )
        self.conn.row_factory = sqlite3.Row
        self._setup_pragmas()
        self._setup_schema()

    def _setup_pragmas(self) -> None:
        """Configure SQLite pragmas for performance and reliability."""
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.conn.execute("PRAGMA temp_store=MEMORY")

        result = self.conn.execute("PRAGMA journal_mode").fetchone()[0]
        if result != "wal":
            logger.warning("WAL mode not enabled, got: %s", result)

    def _setup_schema(self) -> None:
        """Create tables and indexes if they don't exist."""
        self.conn.executescript(SCHEMA_SQL)
        self.conn.execute("PRAGMA user_version = 1")

    def begin(self) -> None:
        """Open the batch transaction unless one is already open."""
        if not self.conn.in_transaction:
            self.conn.execute("BEGIN")

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()

    @contextmanager
    def batch(self) -> Iterator[Database]:
        """One transaction around a whole batch.

        Commits when the block finishes, rolls back and re-raises on any
        exception so a failed batch leaves the store untouched.
        """
        self.begin()
        try:
            yield self
        except BaseException:
            logger.error("Batch failed, rolling back")
            self.rollback()
            raise
        self.commit()

    def insert_row(self, table: str, values: Sequence[tuple[str, object]]) -> None:
        """Insert one row given ordered (column, value) pairs.

        Raises:
            ValueError: Unknown table name.
            sqlite3.Error: Constraint violations and other storage failures.
        """
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        columns = ", ".join(name for name, _ in values)
        placeholders = ", ".join("?" for _ in values)
        self.conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            [value for _, value in values],
        )

    def emit(self, normalized: NormalizedDocument) -> None:
        """Insert every row of a normalized document, in order."""
        for row in normalized.rows:
            self.insert_row(row.table, row.values)

    def log_skipped_document(self, doc: str, file_path: str, reason: str) -> None:
        """Record a document that was left out of the batch."""
        self.conn.execute(
            "INSERT INTO _skipped_documents(doc, file_path, reason) VALUES (?, ?, ?)",
            (doc, file_path, reason),
        )

    def reset(self) -> None:
        """Delete all normalized rows, children first.

        Runs in the caller's transaction; call it inside batch() so the
        deletes are undone together with a failed batch.
        """
        self.begin()
        for table in reversed(TABLES):
            self.conn.execute(f"DELETE FROM {table}")
        self.conn.execute("DELETE FROM _skipped_documents")
        logger.info("Cleared all tables in %s", self.db_path)

    def get_table_counts(self) -> dict[str, int]:
        """Return row count per normalized table, in emission order."""
        counts: dict[str, int] = {}
        for table in TABLES:
            row = self.conn.execute(f"SELECT COUNT(*) as cnt FROM {table}").fetchone()
            counts[table] = row["cnt"]
        return counts

    def get_skipped_documents(self) -> list[sqlite3.Row]:
        return self.conn.execute(
            "SELECT doc, file_path, reason FROM _skipped_documents ORDER BY skip_id"
        ).fetchall()

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()
