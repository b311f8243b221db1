"""
YAML parser for batch change requests.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .schema import Change, ChangeRequest


class ParseError(Exception):
    """Error parsing a change request file."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message)


def load_change_request(
    source: Union[str, Path, Dict[str, Any]],
) -> ChangeRequest:
    """Load a change request from a YAML file, YAML string or dictionary.

    Example::

        session:
          name: Mark verbs
        changes:
          - operation: set_pos
            entry: taboo
            pos: Verb

    Raises:
        ParseError: If the content cannot be parsed or is invalid
        FileNotFoundError: If the file does not exist
    """
    source_path: Optional[Path] = None
    lines: List[Optional[int]] = []

    if isinstance(source, dict):
        data = source
    else:
        if isinstance(source, Path) or _is_file_path(source):
            source_path = Path(source)
            if not source_path.exists():
                raise FileNotFoundError(f"File not found: {source_path}")
            text = source_path.read_text(encoding="utf-8")
        else:
            text = source
        data = _load_yaml_string(text)
        lines = _change_line_numbers(text)

    return _parse_change_request(data, source_path, lines)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path rather than YAML content."""
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _load_yaml_string(s: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(s)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ParseError(
            f"Invalid YAML: {e}", line=mark.line + 1 if mark else None
        ) from e

    if data is None:
        raise ParseError("Empty YAML content")
    if not isinstance(data, dict):
        raise ParseError("YAML root must be a mapping (dictionary)")
    return data


def _change_line_numbers(text: str) -> List[Optional[int]]:
    """1-based line of each item of the top-level ``changes`` sequence."""
    root = yaml.compose(text, Loader=yaml.SafeLoader)
    if not isinstance(root, yaml.MappingNode):
        return []
    for key, value in root.value:
        if key.value == "changes" and isinstance(value, yaml.SequenceNode):
            return [item.start_mark.line + 1 for item in value.value]
    return []


def _parse_change_request(
    data: Dict[str, Any],
    source_path: Optional[Path],
    lines: List[Optional[int]],
) -> ChangeRequest:
    session = data.get("session") or {}
    if not isinstance(session, dict):
        raise ParseError("Field 'session' must be a mapping")

    changes_data = data.get("changes")
    if changes_data is None:
        raise ParseError("Missing required field: 'changes'")
    if not isinstance(changes_data, list):
        raise ParseError("Field 'changes' must be a list")
    if len(changes_data) == 0:
        raise ParseError("Field 'changes' cannot be empty")

    changes = []
    for i, change_data in enumerate(changes_data):
        line = lines[i] if i < len(lines) else None
        if not isinstance(change_data, dict):
            raise ParseError(f"Change #{i + 1} must be a mapping (dictionary)", line=line)
        operation = change_data.get("operation")
        if not operation or not isinstance(operation, str):
            raise ParseError(
                f"Change #{i + 1}: Missing or invalid field 'operation'", line=line
            )
        params = {k: v for k, v in change_data.items() if k != "operation"}
        changes.append(Change(operation=operation, params=params, line_number=line))

    return ChangeRequest(
        changes=changes,
        session_name=session.get("name"),
        session_description=session.get("description"),
        source_file=source_path,
    )
