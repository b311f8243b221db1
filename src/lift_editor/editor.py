"""LiftEditor: main entry point for the lift-editor library."""

from __future__ import annotations

import functools
import logging
import sqlite3
import uuid
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from lift_editor import db as _db
from lift_editor import history as _hist
from lift_editor import search as _search
from lift_editor.exceptions import DuplicateEntityError, EntityNotFoundError
from lift_editor.models import (
    DEFAULT_ANALYSIS_LANG,
    DEFAULT_VERNACULAR_LANG,
    EditRecord,
    Entry,
    Metadata,
    SortField,
    entry_from_dict,
    entry_to_dict,
    metadata_from_dict,
    metadata_to_dict,
    new_entry,
    utc_now,
)
from lift_editor.reader import parse_lift
from lift_editor.writer import serialize_lift

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction (unless in batch)."""

    @functools.wraps(method)
    def wrapper(self: LiftEditor, *args: Any, **kwargs: Any) -> Any:
        if self._in_batch:
            return method(self, *args, **kwargs)
        with self._conn:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class LiftEditor:
    """Import, edit and export a LIFT dictionary backed by a local store."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn = _db.connect(db_path)
        _db.check_schema_version(self._conn)
        _db.init_db(self._conn)
        self._in_batch = False
        self._batch_depth = 0

    @classmethod
    def from_lift(
        cls,
        source: str | Path,
        db_path: str | Path = ":memory:",
    ) -> LiftEditor:
        """Create an editor and import a LIFT file into it."""
        ed = cls(db_path)
        try:
            ed.import_lift(source)
        except BaseException:
            ed.close()
            raise
        return ed

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LiftEditor:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Batch context manager
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Group multiple mutations into a single transaction."""
        self._batch_depth += 1
        if self._batch_depth == 1:
            self._in_batch = True
            self._conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            if self._batch_depth == 1:
                self._conn.rollback()
                self._in_batch = False
            self._batch_depth -= 1
            raise
        else:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._conn.commit()
                self._in_batch = False

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def import_lift(self, source: str | Path) -> int:
        """Replace the store's contents with a LIFT file. Returns the entry count."""
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"File not found: {source}")
        return self.import_lift_string(source.read_text(encoding="utf-8-sig"))

    @_modifies_db
    def import_lift_string(self, text: str) -> int:
        """Replace the store's contents with a LIFT document.

        The document is parsed completely before anything is cleared, so a
        :class:`~lift_editor.exceptions.FormatError` leaves the store as it
        was.
        """
        document = parse_lift(text)

        _db.clear_entries(self._conn)
        _db.clear_metadata(self._conn)
        _db.put_metadata(self._conn, metadata_to_dict(document.metadata))

        seen: set[str] = set()
        for entry in document.entries:
            if not entry.guid:
                entry.guid = str(uuid.uuid4())
                logger.debug("Assigned guid %s to entry %r", entry.guid, entry.entry_id)
            elif entry.guid in seen:
                logger.warning("Duplicate guid %s; later entry replaces earlier", entry.guid)
            seen.add(entry.guid)
            _db.upsert_entry(self._conn, entry)

        count = _db.count_entries(self._conn)
        logger.info("Imported %d entries", count)
        return count

    def export_lift(self, destination: str | Path | None = None) -> str:
        """Serialize the stored entries and metadata to LIFT text.

        If *destination* is given the text is also written there.
        """
        text = serialize_lift(self.list_entries(), self.get_metadata())
        if destination is not None:
            Path(destination).write_text(text, encoding="utf-8")
            logger.info("Exported LIFT to %s", destination)
        return text

    def get_metadata(self) -> Metadata:
        """Stored document metadata, or the defaults if nothing was imported."""
        data = _db.get_metadata(self._conn)
        return metadata_from_dict(data) if data else Metadata()

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def get_entry(self, guid: str) -> Entry:
        row = _db.get_entry_row(self._conn, guid)
        if row is None:
            raise EntityNotFoundError(f"Entry not found: {guid!r}")
        return entry_from_dict(row["data"])

    def list_entries(self, *, pos: str | None = None) -> list[Entry]:
        """All entries in document order, optionally only those with *pos*."""
        return [
            entry_from_dict(row["data"])
            for row in _db.get_entry_rows(self._conn, pos=pos)
        ]

    def find_entries(
        self,
        query: str | None = None,
        *,
        pos: str | None = None,
        morph_type: str | None = None,
        sort_by: str | SortField = SortField.WORD,
        direction: str = "asc",
    ) -> list[Entry]:
        """Filter, then rank by *query* or, without a query, sort."""
        entries: Iterable[Entry] = self.list_entries(pos=pos or None)
        entries = _search.filter_by_morph_type(entries, morph_type)
        if query and query.strip():
            return _search.search_entries(entries, query)
        return _search.sort_entries(entries, sort_by, direction)

    def find_by_word(self, word: str) -> list[Entry]:
        """Entries whose primary word equals *word*."""
        return [
            entry_from_dict(row["data"])
            for row in self._conn.execute(
                "SELECT data FROM entries WHERE word = ? ORDER BY rowid",
                (word,),
            ).fetchall()
        ]

    def new_entry(
        self,
        *,
        lang: str = DEFAULT_VERNACULAR_LANG,
        analysis_lang: str = DEFAULT_ANALYSIS_LANG,
    ) -> Entry:
        """Return an unsaved blank entry; persist it with :meth:`save_entry`."""
        return new_entry(lang=lang, analysis_lang=analysis_lang)

    @_modifies_db
    def add_entry(self, entry: Entry) -> Entry:
        """Persist a new entry; its guid must not exist yet."""
        if _db.get_entry_rowid(self._conn, entry.guid) is not None:
            raise DuplicateEntityError(f"Entry already exists: {entry.guid!r}")
        return self._save(entry, utc_now())

    @_modifies_db
    def save_entry(self, entry: Entry) -> Entry:
        """Persist an entry (new or existing), touching ``date_modified``."""
        return self._save(entry, utc_now())

    @_modifies_db
    def bulk_save_entries(self, entries: Iterable[Entry]) -> int:
        """Persist several entries with one shared modification time."""
        now = utc_now()
        count = 0
        for entry in entries:
            self._save(entry, now)
            count += 1
        return count

    def _save(self, entry: Entry, now: str) -> Entry:
        if not entry.guid:
            entry.guid = str(uuid.uuid4())
        entry.date_modified = now
        if not entry.date_created:
            entry.date_created = now

        old_row = _db.get_entry_row(self._conn, entry.guid)
        _db.upsert_entry(self._conn, entry)
        new_data = entry_to_dict(entry)
        if old_row is None:
            _hist.record_create(
                self._conn, "entry", entry.guid, {"word": new_data["word"]}
            )
        else:
            _hist.record_entry_update(self._conn, entry.guid, old_row["data"], new_data)
        return entry

    @_modifies_db
    def delete_entry(self, guid: str) -> None:
        row = _db.get_entry_row(self._conn, guid)
        if row is None:
            raise EntityNotFoundError(f"Entry not found: {guid!r}")
        _db.delete_entry(self._conn, guid)
        _hist.record_delete(self._conn, "entry", guid, {"word": row["word"]})

    @_modifies_db
    def delete_entries(self, guids: Iterable[str]) -> int:
        """Delete several entries; unknown guids are skipped. Returns the count."""
        count = 0
        for guid in guids:
            row = _db.get_entry_row(self._conn, guid)
            if row is None:
                continue
            _db.delete_entry(self._conn, guid)
            _hist.record_delete(self._conn, "entry", guid, {"word": row["word"]})
            count += 1
        return count

    @_modifies_db
    def clear(self) -> None:
        """Remove all entries and metadata."""
        _db.clear_entries(self._conn)
        _db.clear_metadata(self._conn)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def entry_count(self) -> int:
        return _db.count_entries(self._conn)

    def sense_count(self) -> int:
        return sum(len(e.senses) for e in self.list_entries())

    def example_count(self) -> int:
        return sum(
            len(s.examples) for e in self.list_entries() for s in e.senses
        )

    def unique_pos_values(self) -> list[str]:
        return _db.distinct_pos_values(self._conn)

    def unique_morph_types(self) -> list[str]:
        return sorted({
            value
            for e in self.list_entries()
            for value in e.trait_values("morph-type")
        })

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_history(
        self,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        since: str | None = None,
        operation: str | None = None,
    ) -> list[EditRecord]:
        return _hist.query_history(
            self._conn,
            entity_type=entity_type,
            entity_id=entity_id,
            since=since,
            operation=operation,
        )

    def get_changes_since(self, timestamp: str) -> list[EditRecord]:
        return _hist.query_history(self._conn, since=timestamp)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn
