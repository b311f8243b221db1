"""Domain model dataclasses and enums for lift-editor."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

DEFAULT_PRODUCER = "unknown"
DEFAULT_LIFT_VERSION = "0.13"
DEFAULT_VERNACULAR_LANG = "mnr"
DEFAULT_ANALYSIS_LANG = "en"

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SortField(str, Enum):
    """Keys entries can be sorted by."""

    WORD = "word"
    DATE_MODIFIED = "dateModified"
    DATE_CREATED = "dateCreated"


class EditOperation(str, Enum):
    """Type of mutation recorded in the edit history."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Trait:
    """A name/value pair (morph-type, status, ...)."""

    name: str = ""
    value: str = ""


@dataclass(slots=True)
class Note:
    """A typed, multilingual note."""

    type: str = ""
    forms: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Translation:
    """A translation of an example sentence."""

    type: str = ""
    forms: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Reversal:
    """A reversal-index cross-reference of a sense."""

    type: str = ""
    forms: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Relation:
    """A typed, directed reference from an entry to another entry."""

    type: str = ""
    ref: str = ""
    order: str | None = None
    traits: list[Trait] = field(default_factory=list)


@dataclass(slots=True)
class GrammaticalInfo:
    """The grammatical category (part of speech) of a sense."""

    value: str = ""
    traits: list[Trait] = field(default_factory=list)


@dataclass(slots=True)
class Example:
    """A usage example for a sense."""

    source: str = ""
    forms: dict[str, str] = field(default_factory=dict)
    translations: list[Translation] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)


@dataclass(slots=True)
class Sense:
    """One meaning of an entry.

    ``raw`` holds the original ``<sense>`` sub-tree, if the sense was read
    from a document.
    """

    id: str = ""
    order: str | None = None
    grammatical_info: GrammaticalInfo | None = None
    glosses: dict[str, str] = field(default_factory=dict)
    definitions: dict[str, str] = field(default_factory=dict)
    examples: list[Example] = field(default_factory=list)
    reversals: list[Reversal] = field(default_factory=list)
    raw: dict[str, Any] | None = field(default=None, repr=False, compare=False)


@dataclass(slots=True)
class Entry:
    """A dictionary headword unit.

    ``word`` and ``sense_pos_list`` are derived from ``forms`` and
    ``senses`` on every access. ``raw`` holds the original ``<entry>``
    sub-tree, if the entry was read from a document.
    """

    guid: str = ""
    entry_id: str = ""
    date_created: str = ""
    date_modified: str = ""
    order: str | None = None
    forms: dict[str, str] = field(default_factory=dict)
    traits: list[Trait] = field(default_factory=list)
    relations: list[Relation] = field(default_factory=list)
    senses: list[Sense] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    raw: dict[str, Any] | None = field(default=None, repr=False, compare=False)

    @property
    def word(self) -> str:
        """The primary display word: the first value of ``forms``."""
        return next(iter(self.forms.values()), "")

    @property
    def sense_pos_list(self) -> list[str]:
        """Distinct grammatical-category values of the senses, in order."""
        return list(dict.fromkeys(
            s.grammatical_info.value
            for s in self.senses
            if s.grammatical_info is not None and s.grammatical_info.value
        ))

    def trait_values(self, name: str) -> list[str]:
        return [t.value for t in self.traits if t.name == name]


@dataclass(slots=True)
class Metadata:
    """Document-level data: root attributes and the opaque header."""

    producer: str = DEFAULT_PRODUCER
    version: str = DEFAULT_LIFT_VERSION
    header: dict[str, Any] | None = field(default=None, repr=False)


@dataclass(slots=True)
class LiftDocument:
    """The result of reading a LIFT document."""

    entries: list[Entry]
    metadata: Metadata


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single edit-history entry recording one field-level change."""

    id: int
    entity_type: str
    entity_id: str
    field_name: str | None
    operation: str
    old_value: str | None
    new_value: str | None
    timestamp: str


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def utc_now() -> str:
    """Current time as an ISO 8601 string (UTC, millisecond precision)."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def new_entry(
    *,
    lang: str = DEFAULT_VERNACULAR_LANG,
    analysis_lang: str = DEFAULT_ANALYSIS_LANG,
) -> Entry:
    """Return a blank entry template as offered to users for a new word."""
    guid = str(uuid.uuid4())
    now = utc_now()
    return Entry(
        guid=guid,
        entry_id=f"new_{guid}",
        date_created=now,
        date_modified=now,
        forms={lang: ""},
        traits=[Trait("morph-type", "stem")],
        senses=[
            Sense(
                id=str(uuid.uuid4()),
                grammatical_info=GrammaticalInfo(),
                glosses={analysis_lang: ""},
                definitions={analysis_lang: ""},
            )
        ],
    )


# ---------------------------------------------------------------------------
# JSON conversion (storage shape)
# ---------------------------------------------------------------------------

def entry_to_dict(entry: Entry) -> dict[str, Any]:
    """Convert an entry to plain JSON-compatible data.

    Derived fields are recomputed and included for indexing; they are
    ignored again by :func:`entry_from_dict`.
    """
    data = asdict(entry)
    data["word"] = entry.word
    data["sense_pos_list"] = entry.sense_pos_list
    return data


def entry_from_dict(data: dict[str, Any]) -> Entry:
    return Entry(
        guid=data.get("guid", ""),
        entry_id=data.get("entry_id", ""),
        date_created=data.get("date_created", ""),
        date_modified=data.get("date_modified", ""),
        order=data.get("order"),
        forms=dict(data.get("forms") or {}),
        traits=[_trait(t) for t in data.get("traits") or []],
        relations=[
            Relation(
                type=r.get("type", ""),
                ref=r.get("ref", ""),
                order=r.get("order"),
                traits=[_trait(t) for t in r.get("traits") or []],
            )
            for r in data.get("relations") or []
        ],
        senses=[_sense(s) for s in data.get("senses") or []],
        notes=[_note(n) for n in data.get("notes") or []],
        raw=data.get("raw"),
    )


def metadata_to_dict(metadata: Metadata) -> dict[str, Any]:
    return asdict(metadata)


def metadata_from_dict(data: dict[str, Any]) -> Metadata:
    return Metadata(
        producer=data.get("producer") or DEFAULT_PRODUCER,
        version=data.get("version") or DEFAULT_LIFT_VERSION,
        header=data.get("header"),
    )


def _trait(data: dict[str, Any]) -> Trait:
    return Trait(name=data.get("name", ""), value=data.get("value", ""))


def _note(data: dict[str, Any]) -> Note:
    return Note(type=data.get("type", ""), forms=dict(data.get("forms") or {}))


def _sense(data: dict[str, Any]) -> Sense:
    gi = data.get("grammatical_info")
    return Sense(
        id=data.get("id", ""),
        order=data.get("order"),
        grammatical_info=GrammaticalInfo(
            value=gi.get("value", ""),
            traits=[_trait(t) for t in gi.get("traits") or []],
        ) if gi is not None else None,
        glosses=dict(data.get("glosses") or {}),
        definitions=dict(data.get("definitions") or {}),
        examples=[
            Example(
                source=ex.get("source", ""),
                forms=dict(ex.get("forms") or {}),
                translations=[
                    Translation(type=t.get("type", ""), forms=dict(t.get("forms") or {}))
                    for t in ex.get("translations") or []
                ],
                notes=[_note(n) for n in ex.get("notes") or []],
            )
            for ex in data.get("examples") or []
        ],
        reversals=[
            Reversal(type=r.get("type", ""), forms=dict(r.get("forms") or {}))
            for r in data.get("reversals") or []
        ],
        raw=data.get("raw"),
    )
