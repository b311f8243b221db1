"""LIFT writer: structured entries and metadata back to document text.

Entries read from a document carry their original ``<entry>`` sub-tree.
The writer starts from a copy of that tree and overlays the structured
fields slot by slot, so elements the model does not represent survive the
round-trip. A slot whose structured value still matches what the reader
extracts from it is left untouched; a changed slot is rebuilt wholesale; an
emptied slot is removed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from lift_editor import __version__
from lift_editor.models import (
    DEFAULT_LIFT_VERSION,
    DEFAULT_PRODUCER,
    Entry,
    Example,
    GrammaticalInfo,
    Metadata,
    Note,
    Relation,
    Reversal,
    Sense,
    Trait,
)
from lift_editor.reader import (
    parse_examples,
    parse_forms,
    parse_grammatical_info,
    parse_multitext,
    parse_notes,
    parse_relations,
    parse_reversals,
    parse_traits,
)
from lift_editor.tree import (
    Node,
    attr,
    build_xml,
    clone,
    remove_slot,
    set_slot,
)

logger = logging.getLogger(__name__)

PRODUCER_NAME = f"lift-editor/{__version__}"

# Position of child slots when a slot is added to an element that lacks it
ENTRY_SLOT_ORDER = (
    "lexical-unit", "citation", "pronunciation", "variant",
    "trait", "relation", "sense", "note", "etymology", "field", "annotation",
)
SENSE_SLOT_ORDER = (
    "grammatical-info", "gloss", "definition", "relation", "note",
    "example", "reversal", "illustration", "subsense", "trait", "field",
    "annotation",
)


def serialize_lift(entries: Sequence[Entry], metadata: Metadata | None = None) -> str:
    """Serialize entries and document metadata to LIFT text.

    The output is not validated; malformed records are written as they are.
    """
    metadata = metadata or Metadata()
    lift: dict[str, Node] = {
        attr("producer"): producer_lineage(metadata.producer),
        attr("version"): metadata.version or DEFAULT_LIFT_VERSION,
    }
    if metadata.header:
        lift["header"] = clone(metadata.header)
    lift["entry"] = [build_entry(entry) for entry in entries]
    logger.info("Serialized %d entries", len(entries))
    return build_xml({"lift": lift})


def write_lift(
    entries: Sequence[Entry],
    metadata: Metadata | None,
    destination: str | Path,
) -> Path:
    """Serialize and write a LIFT file."""
    destination = Path(destination)
    destination.write_text(serialize_lift(entries, metadata), encoding="utf-8")
    return destination


def producer_lineage(producer: str | None) -> str:
    """Return the producer attribute, annotated with the original producer."""
    producer = producer or DEFAULT_PRODUCER
    if producer.startswith(PRODUCER_NAME.split("/")[0] + "/"):
        # Written by us before; the lineage is already embedded
        return producer
    return f"{PRODUCER_NAME} (based on {producer})"


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

def build_entry(entry: Entry) -> dict[str, Node]:
    """Build the ``<entry>`` node for *entry*.

    ``entry.raw`` is deep-copied, never modified.
    """
    if entry.raw is not None:
        logger.debug("Overlaying edits on raw entry %s", entry.guid)
        node = clone(entry.raw)
    else:
        logger.debug("Building new entry %s", entry.guid)
        node = {}

    _set_attr(node, "dateCreated", entry.date_created)
    _set_attr(node, "dateModified", entry.date_modified)
    _set_attr(node, "id", entry.entry_id)
    _set_attr(node, "guid", entry.guid)
    _set_attr(node, "order", entry.order)

    _overlay(node, "lexical-unit", _clean(entry.forms),
             parse_multitext, _build_multitext, ENTRY_SLOT_ORDER)
    _overlay(node, "trait", entry.traits,
             parse_traits, _build_traits, ENTRY_SLOT_ORDER)
    _overlay(node, "relation", entry.relations,
             parse_relations, _build_relations, ENTRY_SLOT_ORDER)
    if entry.senses:
        set_slot(node, "sense", [build_sense(s) for s in entry.senses],
                 ENTRY_SLOT_ORDER)
    else:
        remove_slot(node, "sense")
    _overlay(node, "note", entry.notes,
             parse_notes, _build_notes, ENTRY_SLOT_ORDER)
    return node


# ---------------------------------------------------------------------------
# Sense
# ---------------------------------------------------------------------------

def build_sense(sense: Sense) -> dict[str, Node]:
    """Build the ``<sense>`` node, overlaying ``sense.raw`` if present."""
    node = clone(sense.raw) if sense.raw is not None else {}

    _set_attr(node, "id", sense.id)
    _set_attr(node, "order", sense.order)

    gi = sense.grammatical_info
    _overlay(node, "grammatical-info", gi if gi is not None and gi.value else None,
             parse_grammatical_info, _build_grammatical_info, SENSE_SLOT_ORDER)
    _overlay(node, "gloss", _clean(sense.glosses),
             parse_forms, _build_forms, SENSE_SLOT_ORDER)
    _overlay(node, "definition", _clean(sense.definitions),
             parse_multitext, _build_multitext, SENSE_SLOT_ORDER)
    _overlay(node, "example", sense.examples,
             parse_examples, _build_examples, SENSE_SLOT_ORDER)
    _overlay(node, "reversal", sense.reversals,
             parse_reversals, _build_reversals, SENSE_SLOT_ORDER)
    return node


# ---------------------------------------------------------------------------
# Overlay
# ---------------------------------------------------------------------------

def _overlay(
    node: dict[str, Node],
    name: str,
    value: Any,
    parse: Callable[[Node], Any],
    build: Callable[[Any], Node],
    order: Sequence[str],
) -> None:
    """Apply one structured field to child slot *name* of *node*."""
    if not value:
        remove_slot(node, name)
    elif name in node and _same(parse(node[name]), value):
        pass
    else:
        set_slot(node, name, build(value), order)


def _same(parsed: Any, current: Any) -> bool:
    if isinstance(parsed, dict) and isinstance(current, dict):
        # Order matters: the first form is the primary word
        return list(parsed.items()) == list(current.items())
    return parsed == current


def _set_attr(node: dict[str, Node], name: str, value: str | None) -> None:
    key = attr(name)
    if value is None:
        node.pop(key, None)
    elif value or key in node:
        node[key] = value


def _clean(forms: dict[str, str]) -> dict[str, str]:
    return {lang: text for lang, text in forms.items() if lang and text}


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _build_forms(forms: dict[str, str]) -> list[Node]:
    return [{attr("lang"): lang, "text": text} for lang, text in _clean(forms).items()]


def _build_multitext(forms: dict[str, str]) -> Node:
    return {"form": _build_forms(forms)}


def _build_traits(traits: list[Trait]) -> list[Node]:
    return [{attr("name"): t.name, attr("value"): t.value} for t in traits]


def _build_relations(relations: list[Relation]) -> list[Node]:
    nodes = []
    for r in relations:
        rel: dict[str, Node] = {attr("type"): r.type, attr("ref"): r.ref}
        if r.order is not None:
            rel[attr("order")] = r.order
        if r.traits:
            rel["trait"] = _build_traits(r.traits)
        nodes.append(rel)
    return nodes


def _build_grammatical_info(gi: GrammaticalInfo) -> Node:
    node: dict[str, Node] = {attr("value"): gi.value}
    if gi.traits:
        node["trait"] = _build_traits(gi.traits)
    return node


def _build_notes(notes: list[Note]) -> list[Node]:
    return [_build_note(n) for n in notes]


def _build_note(note: Note) -> Node:
    node: dict[str, Node] = {}
    if note.type:
        node[attr("type")] = note.type
    if _clean(note.forms):
        node["form"] = _build_forms(note.forms)
    return node


def _build_examples(examples: list[Example]) -> list[Node]:
    return [_build_example(ex) for ex in examples]


def _build_example(example: Example) -> Node:
    node: dict[str, Node] = {}
    if example.source:
        node[attr("source")] = example.source
    if _clean(example.forms):
        node["form"] = _build_forms(example.forms)
    if example.translations:
        node["translation"] = [
            {attr("type"): t.type, "form": _build_forms(t.forms)}
            for t in example.translations
        ]
    if example.notes:
        node["note"] = _build_notes(example.notes)
    return node


def _build_reversals(reversals: list[Reversal]) -> list[Node]:
    return [
        {attr("type"): r.type, "form": _build_forms(r.forms)}
        for r in reversals
    ]
