"""LIFT reader: document text to structured entries and metadata."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from lift_editor.exceptions import FormatError
from lift_editor.models import (
    DEFAULT_ANALYSIS_LANG,
    DEFAULT_LIFT_VERSION,
    DEFAULT_PRODUCER,
    Entry,
    Example,
    GrammaticalInfo,
    LiftDocument,
    Metadata,
    Note,
    Relation,
    Reversal,
    Sense,
    Trait,
    Translation,
)
from lift_editor.tree import (
    Node,
    as_dict,
    clone,
    ensure_list,
    extract_text,
    get_attr,
    parse_xml,
)

logger = logging.getLogger(__name__)


def parse_lift(text: str) -> LiftDocument:
    """Parse a LIFT document into entries and document metadata.

    Raises :class:`FormatError` if the text is not XML, has no ``<lift>``
    root, or contains no ``<entry>`` elements. Anything below that level
    degrades to empty values instead of failing.
    """
    try:
        tree = parse_xml(text.lstrip("\ufeff"))
    except ET.ParseError as e:
        raise FormatError(f"Invalid .lift file: not well-formed XML ({e})") from e

    lift = tree.get("lift")
    if not isinstance(lift, dict) or not lift.get("entry"):
        raise FormatError(
            "Invalid .lift file: no <lift> root or <entry> elements found"
        )

    metadata = Metadata(
        producer=get_attr(lift, "producer") or DEFAULT_PRODUCER,
        version=get_attr(lift, "version") or DEFAULT_LIFT_VERSION,
        header=lift.get("header") or None,
    )
    entries = [parse_entry(raw) for raw in ensure_list(lift["entry"])]
    logger.info(
        "Parsed %d entries (producer %r, LIFT %s)",
        len(entries), metadata.producer, metadata.version,
    )
    return LiftDocument(entries=entries, metadata=metadata)


def read_lift(source: str | Path) -> LiftDocument:
    """Read and parse a LIFT file."""
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"File not found: {source}")
    return parse_lift(source.read_text(encoding="utf-8-sig"))


# ---------------------------------------------------------------------------
# Entry-level parsing
# ---------------------------------------------------------------------------

def parse_entry(raw: Node) -> Entry:
    """Parse one ``<entry>`` node; the node is kept as ``Entry.raw``."""
    node = as_dict(raw)
    return Entry(
        guid=get_attr(node, "guid"),
        entry_id=get_attr(node, "id"),
        date_created=get_attr(node, "dateCreated"),
        date_modified=get_attr(node, "dateModified"),
        order=get_attr(node, "order") or None,
        forms=parse_multitext(node.get("lexical-unit")),
        traits=parse_traits(node.get("trait")),
        relations=parse_relations(node.get("relation")),
        senses=[parse_sense(s) for s in ensure_list(node.get("sense"))],
        notes=parse_notes(node.get("note")),
        raw=node if isinstance(raw, dict) else None,
    )


def parse_traits(raw: Node) -> list[Trait]:
    return [
        Trait(name=get_attr(t, "name"), value=get_attr(t, "value"))
        for t in ensure_list(raw)
    ]


def parse_relations(raw: Node) -> list[Relation]:
    return [
        Relation(
            type=get_attr(r, "type"),
            ref=get_attr(r, "ref"),
            order=get_attr(r, "order") or None,
            traits=parse_traits(as_dict(r).get("trait")),
        )
        for r in ensure_list(raw)
    ]


def parse_notes(raw: Node) -> list[Note]:
    return [parse_note(n) for n in ensure_list(raw)]


def parse_note(raw: Node) -> Note:
    if isinstance(raw, str):
        return Note(forms={DEFAULT_ANALYSIS_LANG: raw} if raw else {})
    return Note(
        type=get_attr(raw, "type"),
        forms=parse_forms(as_dict(raw).get("form")),
    )


# ---------------------------------------------------------------------------
# Sense-level parsing
# ---------------------------------------------------------------------------

def parse_sense(raw: Node) -> Sense:
    """Parse one ``<sense>`` node.

    The sense keeps its own copy of the node as ``Sense.raw`` so it never
    shares structure with the enclosing ``Entry.raw``.
    """
    node = as_dict(raw)
    return Sense(
        id=get_attr(node, "id"),
        order=get_attr(node, "order") or None,
        grammatical_info=parse_grammatical_info(node.get("grammatical-info")),
        glosses=parse_forms(node.get("gloss")),
        definitions=parse_multitext(node.get("definition")),
        examples=parse_examples(node.get("example")),
        reversals=parse_reversals(node.get("reversal")),
        raw=clone(node) if isinstance(raw, dict) else None,
    )


def parse_grammatical_info(raw: Node) -> GrammaticalInfo | None:
    raw = _first(raw)
    if not raw:
        return None
    return GrammaticalInfo(
        value=get_attr(raw, "value"),
        traits=parse_traits(as_dict(raw).get("trait")),
    )


def parse_examples(raw: Node) -> list[Example]:
    return [parse_example(ex) for ex in ensure_list(raw)]


def parse_example(raw: Node) -> Example:
    node = as_dict(raw)
    return Example(
        source=get_attr(node, "source"),
        forms=parse_forms(node.get("form")),
        translations=[
            Translation(
                type=get_attr(t, "type"),
                forms=parse_forms(as_dict(t).get("form")),
            )
            for t in ensure_list(node.get("translation"))
        ],
        notes=parse_notes(node.get("note")),
    )


def parse_reversals(raw: Node) -> list[Reversal]:
    return [
        Reversal(
            type=get_attr(r, "type"),
            forms=parse_forms(as_dict(r).get("form")),
        )
        for r in ensure_list(raw)
    ]


# ---------------------------------------------------------------------------
# Multi-text
# ---------------------------------------------------------------------------

def parse_multitext(raw: Node) -> dict[str, str]:
    """Map ``lang`` to text for a container of ``<form>`` children."""
    return parse_forms(as_dict(_first(raw)).get("form"))


def parse_forms(raw: Node) -> dict[str, str]:
    """Map ``lang`` to text for a list of form-like nodes.

    Items without a language tag or without text are dropped.
    """
    forms: dict[str, str] = {}
    for form in ensure_list(raw):
        lang = get_attr(form, "lang")
        text = extract_text(form)
        if lang and text:
            forms[lang] = text
        else:
            logger.debug("Dropping form without lang or text: %r", form)
    return forms


def _first(value: Any) -> Any:
    return value[0] if isinstance(value, list) and value else value
