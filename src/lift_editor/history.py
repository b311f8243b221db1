"""Edit history recording and querying for lift-editor."""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from lift_editor.models import EditOperation, EditRecord

# Entry fields compared when recording an update; raw fragments are opaque
# and derived fields follow from these.
TRACKED_ENTRY_FIELDS = (
    "entry_id",
    "order",
    "forms",
    "traits",
    "relations",
    "senses",
    "notes",
)


def _encode(value: Any) -> str | None:
    return None if value is None else json.dumps(value, ensure_ascii=False)


def record_create(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    new_value: dict | None = None,
) -> None:
    """Record a CREATE operation in edit history."""
    conn.execute(
        "INSERT INTO edit_history (entity_type, entity_id, operation, new_value) "
        "VALUES (?, ?, ?, ?)",
        (entity_type, entity_id, EditOperation.CREATE.value, _encode(new_value)),
    )


def record_update(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    field_name: str,
    old_value: Any,
    new_value: Any,
) -> None:
    """Record an UPDATE of one field; values are stored JSON-encoded."""
    conn.execute(
        "INSERT INTO edit_history "
        "(entity_type, entity_id, field_name, operation, old_value, new_value) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (
            entity_type,
            entity_id,
            field_name,
            EditOperation.UPDATE.value,
            json.dumps(old_value, ensure_ascii=False),
            json.dumps(new_value, ensure_ascii=False),
        ),
    )


def record_delete(
    conn: sqlite3.Connection,
    entity_type: str,
    entity_id: str,
    old_value: dict | None = None,
) -> None:
    """Record a DELETE operation in edit history."""
    conn.execute(
        "INSERT INTO edit_history (entity_type, entity_id, operation, old_value) "
        "VALUES (?, ?, ?, ?)",
        (entity_type, entity_id, EditOperation.DELETE.value, _encode(old_value)),
    )


def record_entry_update(
    conn: sqlite3.Connection,
    guid: str,
    old: dict[str, Any],
    new: dict[str, Any],
) -> list[str]:
    """Record one UPDATE per tracked field that differs between two
    stored entry dicts. Returns the changed field names.
    """
    changed = []
    for name in TRACKED_ENTRY_FIELDS:
        old_value = _without_raw(old.get(name))
        new_value = _without_raw(new.get(name))
        if old_value != new_value:
            record_update(conn, "entry", guid, name, old_value, new_value)
            changed.append(name)
    return changed


def _without_raw(value: Any) -> Any:
    if isinstance(value, list):
        return [_without_raw(v) for v in value]
    if isinstance(value, dict):
        return {k: _without_raw(v) for k, v in value.items() if k != "raw"}
    return value


def query_history(
    conn: sqlite3.Connection,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    since: str | None = None,
    operation: str | None = None,
    limit: int | None = None,
) -> list[EditRecord]:
    """Query edit history with optional filters, oldest first."""
    clauses: list[str] = []
    params: list[Any] = []

    for column, value in (
        ("entity_type", entity_type),
        ("entity_id", entity_id),
        ("operation", operation),
    ):
        if value is not None:
            clauses.append(f"{column} = ?")
            params.append(value)
    if since is not None:
        clauses.append("timestamp > ?")
        params.append(since)

    where = " AND ".join(clauses) if clauses else "1=1"
    sql = (
        f"SELECT rowid, * FROM edit_history WHERE {where} "
        "ORDER BY timestamp ASC, rowid ASC"
    )
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)

    rows = conn.execute(sql, params).fetchall()
    return [
        EditRecord(
            id=row["rowid"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            field_name=row["field_name"],
            operation=row["operation"],
            old_value=row["old_value"],
            new_value=row["new_value"],
            timestamp=row["timestamp"],
        )
        for row in rows
    ]
