"""Shared tree-shape contract between the LIFT reader and writer.

Both directions go through this module: :func:`parse_xml` turns document
text into a tree of plain values and :func:`build_xml` turns such a tree back
into text. The conventions are:

* an element with attributes or children is a ``dict``; attribute names are
  prefixed with :data:`ATTR_PREFIX` and direct text is stored under
  :data:`TEXT_NODE`;
* an element with neither is just its text (``""`` when empty);
* children named in :data:`FORCED_ARRAY_ELEMENTS` are always a ``list``,
  other children become a ``list`` only when they repeat;
* an element with mixed content (non-blank text beside child elements, or
  any ``<text>``/``<span>`` with children) keeps its content verbatim and in
  order under :data:`MIXED_NODE`: a ``list`` of text strings and
  single-key ``{tag: node}`` mappings.

Bump :data:`TREE_CONTRACT_VERSION` whenever one of these rules changes.
"""

from __future__ import annotations

import copy
import re
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from typing import Any

TREE_CONTRACT_VERSION = "2"

ATTR_PREFIX = "@_"
TEXT_NODE = "#text"
MIXED_NODE = "#mixed"

# Elements whose children are inline markup within character data
MIXED_CONTENT_ELEMENTS = frozenset({"text", "span"})

# Characters XML 1.0 does not allow in a document
_INVALID_XML_CHARS = re.compile(
    "[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]"
)

FORCED_ARRAY_ELEMENTS = frozenset({
    "entry",
    "sense",
    "form",
    "example",
    "note",
    "trait",
    "relation",
    "gloss",
    "reversal",
    "field",
    "range",
})

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# str | dict[str, Node | list[Node]]
Node = Any


def attr(name: str) -> str:
    """Return the tree key for the attribute *name*."""
    return ATTR_PREFIX + name


def is_forced_array(name: str) -> bool:
    return name in FORCED_ARRAY_ELEMENTS


# ---------------------------------------------------------------------------
# Text -> tree
# ---------------------------------------------------------------------------

def parse_xml(text: str) -> dict[str, Node]:
    """Parse document text into ``{root_tag: node}``.

    Raises :class:`xml.etree.ElementTree.ParseError` for malformed input.
    """
    root = ET.fromstring(text)
    return {root.tag: element_to_node(root)}


def element_to_node(elem: ET.Element) -> Node:
    """Convert one element (recursively) to its tree node."""
    children = list(elem)
    if not elem.attrib and not children:
        return elem.text or ""

    node: dict[str, Node] = {attr(k): v for k, v in elem.attrib.items()}
    if not children:
        if elem.text:
            node[TEXT_NODE] = elem.text
    elif has_mixed_content(elem):
        node[MIXED_NODE] = _mixed_segments(elem)
    else:
        # Whitespace between child elements is layout, not content
        for child in children:
            _add_child(node, child.tag, element_to_node(child))
    return node


def has_mixed_content(elem: ET.Element) -> bool:
    """Whether the text around *elem*'s children is content, not layout."""
    children = list(elem)
    if not children:
        return False
    if elem.tag in MIXED_CONTENT_ELEMENTS:
        return True
    segments = [elem.text] + [child.tail for child in children]
    return any(s and s.strip() for s in segments)


def _mixed_segments(elem: ET.Element) -> list[Node]:
    segments: list[Node] = []
    if elem.text:
        segments.append(elem.text)
    for child in elem:
        segments.append({child.tag: element_to_node(child)})
        if child.tail:
            segments.append(child.tail)
    return segments


def _add_child(node: dict[str, Node], name: str, value: Node) -> None:
    if name in FORCED_ARRAY_ELEMENTS:
        node.setdefault(name, []).append(value)
    elif name in node:
        existing = node[name]
        if isinstance(existing, list):
            existing.append(value)
        else:
            node[name] = [existing, value]
    else:
        node[name] = value


# ---------------------------------------------------------------------------
# Tree -> text
# ---------------------------------------------------------------------------

def build_xml(
    tree: dict[str, Node],
    *,
    indent: str = "  ",
    declaration: bool = True,
) -> str:
    """Serialize ``{root_tag: node}`` to document text."""
    if len(tree) != 1:
        raise ValueError(f"Expected exactly one root element, got {len(tree)}")
    ((tag, node),) = tree.items()
    root = node_to_element(tag, node)
    if indent:
        indent_element(root, indent)
    body = ET.tostring(root, encoding="unicode")
    if declaration:
        return f"{XML_DECLARATION}\n{body}\n"
    return body


def indent_element(elem: ET.Element, space: str = "  ", level: int = 0) -> None:
    """Indent element-only containers in place.

    Like :func:`xml.etree.ElementTree.indent`, but the content of elements
    with mixed content is left exactly as it is.
    """
    children = list(elem)
    if not children or has_mixed_content(elem):
        return
    child_indentation = "\n" + space * (level + 1)
    elem.text = child_indentation
    for child in children:
        indent_element(child, space, level + 1)
        child.tail = child_indentation
    children[-1].tail = "\n" + space * level


def node_to_element(tag: str, node: Node) -> ET.Element:
    """Convert a tree node (recursively) to an element named *tag*."""
    elem = ET.Element(tag)
    _fill_element(elem, node)
    return elem


def _fill_element(elem: ET.Element, node: Node) -> None:
    if not isinstance(node, dict):
        elem.text = _to_text(node)
        return
    for key, value in node.items():
        if key == TEXT_NODE:
            elem.text = _to_text(value)
        elif key == MIXED_NODE:
            _fill_mixed(elem, ensure_list(value))
        elif key.startswith(ATTR_PREFIX):
            if value is not None:
                elem.set(key[len(ATTR_PREFIX):], _to_text(value))
        elif value is not None:
            items = value if isinstance(value, list) else [value]
            for item in items:
                _fill_element(ET.SubElement(elem, key), item)


def _fill_mixed(elem: ET.Element, segments: list[Node]) -> None:
    last: ET.Element | None = None
    for segment in segments:
        if isinstance(segment, dict):
            for tag, child in segment.items():
                last = ET.SubElement(elem, tag)
                _fill_element(last, child)
        elif last is None:
            elem.text = (elem.text or "") + _to_text(segment)
        else:
            last.tail = (last.tail or "") + _to_text(segment)


def _to_text(value: Any) -> str:
    """Text for an attribute or character data, minus characters XML forbids."""
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    return _INVALID_XML_CHARS.sub("", text)


# ---------------------------------------------------------------------------
# Accessors and overlay helpers
# ---------------------------------------------------------------------------

def ensure_list(value: Node) -> list[Node]:
    """Return *value* as a list; absent or empty values give ``[]``."""
    if value is None or value == "":
        return []
    return value if isinstance(value, list) else [value]


def as_dict(node: Node) -> dict[str, Node]:
    """Return *node* if it is an element mapping, else an empty mapping."""
    return node if isinstance(node, dict) else {}


def get_attr(node: Node, name: str) -> str:
    """Return attribute *name* of *node*, or ``""``."""
    value = as_dict(node).get(attr(name))
    return "" if value is None else _to_text(value)


def extract_text(node: Node) -> str:
    """Return the content of the ``text`` child of a form-like node.

    Handles a plain string, a mapping carrying :data:`TEXT_NODE`, and any
    other shape by best-effort coercion. Never raises; ``""`` when absent.
    """
    text = as_dict(node).get("text")
    if not text:
        return ""
    return _coerce_text(text)


def _coerce_text(value: Node) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if TEXT_NODE in value:
            return _to_text(value[TEXT_NODE])
        if MIXED_NODE in value:
            return "".join(
                _coerce_text(list(s.values())) if isinstance(s, dict) else _to_text(s)
                for s in ensure_list(value[MIXED_NODE])
            )
        return "".join(
            _coerce_text(v) for k, v in value.items()
            if not k.startswith(ATTR_PREFIX)
        )
    if isinstance(value, list):
        return "".join(_coerce_text(v) for v in value)
    return _to_text(value)


def clone(node: Node) -> Node:
    """Return an independent deep copy of *node*."""
    return copy.deepcopy(node)


def set_slot(
    node: dict[str, Node],
    name: str,
    value: Node,
    order: Sequence[str] = (),
) -> None:
    """Replace child slot *name* on *node*.

    An existing slot is replaced in place. A new slot is inserted before the
    first existing sibling that follows *name* in *order*, or appended.
    """
    if name in node or name not in order:
        node[name] = value
        return
    following = set(order[order.index(name) + 1:])
    items = list(node.items())
    for i, (key, _) in enumerate(items):
        if key in following:
            items.insert(i, (name, value))
            break
    else:
        items.append((name, value))
    node.clear()
    node.update(items)


def remove_slot(node: dict[str, Node], name: str) -> None:
    node.pop(name, None)
