"""Database connection, DDL, and low-level CRUD for lift-editor."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from lift_editor.exceptions import DatabaseError
from lift_editor.models import Entry, entry_to_dict

SCHEMA_VERSION = "1.0"

# Fixed key the document metadata is stored under
METADATA_KEY = "liftMetadata"

# ---------------------------------------------------------------------------
# META type adapter/converter
# ---------------------------------------------------------------------------

def _adapt_metadata(obj: dict) -> str:
    return json.dumps(obj)


def _convert_metadata(data: bytes) -> dict | None:
    if data is None or data == b"":
        return None
    return json.loads(data)


sqlite3.register_adapter(dict, _adapt_metadata)
sqlite3.register_converter("META", _convert_metadata)


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Entries; rowid order is document order
CREATE TABLE IF NOT EXISTS entries (
    rowid INTEGER PRIMARY KEY,
    guid TEXT NOT NULL,
    entry_id TEXT NOT NULL DEFAULT '',
    word TEXT NOT NULL DEFAULT '',
    date_created TEXT NOT NULL DEFAULT '',
    date_modified TEXT NOT NULL DEFAULT '',
    data META NOT NULL,
    UNIQUE (guid)
);
CREATE INDEX IF NOT EXISTS entry_word_index ON entries (word);
CREATE INDEX IF NOT EXISTS entry_date_modified_index ON entries (date_modified);

-- Multi-entry part-of-speech index
CREATE TABLE IF NOT EXISTS entry_pos (
    entry_rowid INTEGER NOT NULL REFERENCES entries (rowid) ON DELETE CASCADE,
    pos TEXT NOT NULL,
    UNIQUE (entry_rowid, pos)
);
CREATE INDEX IF NOT EXISTS entry_pos_index ON entry_pos (pos);

-- Document-level metadata
CREATE TABLE IF NOT EXISTS lift_metadata (
    key TEXT NOT NULL,
    value META,
    UNIQUE (key)
);

-- Edit history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    entity_type TEXT NOT NULL CHECK( entity_type IN ('entry','metadata') ),
    entity_id TEXT NOT NULL,
    field_name TEXT,
    operation TEXT NOT NULL CHECK( operation IN ('CREATE', 'UPDATE', 'DELETE') ),
    old_value TEXT,
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS edit_history_entity_index ON edit_history (entity_type, entity_id);
CREATE INDEX IF NOT EXISTS edit_history_timestamp_index ON edit_history (timestamp);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with editor PRAGMA settings."""
    db_path_str = str(db_path)
    conn = sqlite3.connect(
        db_path_str,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
    )
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


# ---------------------------------------------------------------------------
# Entry CRUD helpers
# ---------------------------------------------------------------------------

def upsert_entry(conn: sqlite3.Connection, entry: Entry) -> int:
    """Insert or update an entry by guid and return its rowid.

    An updated entry keeps its rowid, and so its position in the document.
    """
    data = entry_to_dict(entry)
    conn.execute(
        "INSERT INTO entries "
        "(guid, entry_id, word, date_created, date_modified, data) "
        "VALUES (?, ?, ?, ?, ?, ?) "
        "ON CONFLICT (guid) DO UPDATE SET "
        "entry_id = excluded.entry_id, word = excluded.word, "
        "date_created = excluded.date_created, "
        "date_modified = excluded.date_modified, data = excluded.data",
        (entry.guid, entry.entry_id, data["word"], entry.date_created,
         entry.date_modified, data),
    )
    rowid = get_entry_rowid(conn, entry.guid)
    if rowid is None:
        raise DatabaseError(f"Entry {entry.guid!r} was not stored")
    conn.execute("DELETE FROM entry_pos WHERE entry_rowid = ?", (rowid,))
    conn.executemany(
        "INSERT OR IGNORE INTO entry_pos (entry_rowid, pos) VALUES (?, ?)",
        [(rowid, pos) for pos in data["sense_pos_list"]],
    )
    return rowid


def get_entry_rowid(conn: sqlite3.Connection, guid: str) -> int | None:
    """Get the rowid for an entry by its guid, or None."""
    row = conn.execute(
        "SELECT rowid FROM entries WHERE guid = ?",
        (guid,),
    ).fetchone()
    return row[0] if row else None


def get_entry_row(conn: sqlite3.Connection, guid: str) -> sqlite3.Row | None:
    """Get a full entry row by guid."""
    return conn.execute(
        "SELECT rowid, * FROM entries WHERE guid = ?",
        (guid,),
    ).fetchone()


def get_entry_rows(
    conn: sqlite3.Connection,
    *,
    pos: str | None = None,
) -> list[sqlite3.Row]:
    """Get entry rows in document order, optionally only those with *pos*."""
    if pos is None:
        return conn.execute(
            "SELECT rowid, * FROM entries ORDER BY rowid"
        ).fetchall()
    return conn.execute(
        "SELECT e.rowid, e.* FROM entries e "
        "JOIN entry_pos p ON p.entry_rowid = e.rowid "
        "WHERE p.pos = ? ORDER BY e.rowid",
        (pos,),
    ).fetchall()


def delete_entry(conn: sqlite3.Connection, guid: str) -> bool:
    """Delete an entry by guid. Returns whether a row was deleted."""
    cur = conn.execute("DELETE FROM entries WHERE guid = ?", (guid,))
    return cur.rowcount > 0


def clear_entries(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM entries")


def count_entries(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]


def distinct_pos_values(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(
        "SELECT DISTINCT pos FROM entry_pos ORDER BY pos"
    ).fetchall()
    return [r["pos"] for r in rows]


# ---------------------------------------------------------------------------
# Metadata helpers
# ---------------------------------------------------------------------------

def put_metadata(
    conn: sqlite3.Connection,
    value: dict[str, Any],
    key: str = METADATA_KEY,
) -> None:
    conn.execute(
        "INSERT INTO lift_metadata (key, value) VALUES (?, ?) "
        "ON CONFLICT (key) DO UPDATE SET value = excluded.value",
        (key, value),
    )


def get_metadata(
    conn: sqlite3.Connection,
    key: str = METADATA_KEY,
) -> dict[str, Any] | None:
    row = conn.execute(
        "SELECT value FROM lift_metadata WHERE key = ?",
        (key,),
    ).fetchone()
    return row["value"] if row else None


def clear_metadata(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM lift_metadata")
