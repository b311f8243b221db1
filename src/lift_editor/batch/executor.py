"""
Executor for batch change requests.

Applies changes to the entries of a :class:`~lift_editor.editor.LiftEditor`.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List

from ..exceptions import EntityNotFoundError, ValidationError
from ..models import DEFAULT_ANALYSIS_LANG, Entry, GrammaticalInfo, Relation, Sense, Trait
from .schema import (
    BatchResult,
    Change,
    ChangeRequest,
    ChangeResult,
    OperationType,
)

if TYPE_CHECKING:
    from ..editor import LiftEditor

logger = logging.getLogger(__name__)


def execute_change_request(
    request: ChangeRequest,
    editor: LiftEditor,
    dry_run: bool = False,
) -> BatchResult:
    """Execute a batch change request against *editor*.

    Each change succeeds or fails on its own; successful changes are
    committed together at the end.

    Args:
        request: The change request to execute
        editor: Editor holding the entries to change
        dry_run: If True, only resolve targets without making changes

    Returns:
        BatchResult with details of each change
    """
    start_time = time.time()
    results: List[ChangeResult] = []

    if request.session_name:
        logger.info("Executing batch %r (%d changes)", request.session_name, len(request.changes))

    with editor.batch():
        for i, change in enumerate(request.changes):
            results.append(_execute_change(change, i, editor, dry_run))

    success_count = sum(1 for r in results if r.success)
    return BatchResult(
        total_count=len(results),
        success_count=success_count,
        failure_count=len(results) - success_count,
        changes=results,
        duration_seconds=time.time() - start_time,
        dry_run=dry_run,
    )


def resolve_entry(editor: LiftEditor, ref: str) -> Entry:
    """Find an entry by guid, falling back to a unique headword match."""
    try:
        return editor.get_entry(ref)
    except EntityNotFoundError:
        pass
    matches = editor.find_by_word(ref)
    if not matches:
        raise EntityNotFoundError(f"No entry with guid or word {ref!r}")
    if len(matches) > 1:
        raise ValidationError(
            f"Word {ref!r} matches {len(matches)} entries; use a guid"
        )
    return matches[0]


def _execute_change(
    change: Change,
    index: int,
    editor: LiftEditor,
    dry_run: bool,
) -> ChangeResult:
    """Execute a single change operation."""
    op = change.operation

    try:
        entry = resolve_entry(editor, change.entry or "")

        if dry_run:
            return ChangeResult(
                index=index,
                operation=op,
                success=True,
                message=f"Would execute {op} on {entry.word or entry.guid}",
                target=entry.guid,
            )

        if op == OperationType.DELETE_ENTRY.value:
            editor.delete_entry(entry.guid)
            message = f"Deleted entry {entry.word or entry.guid}"
        else:
            handler = _HANDLERS.get(op)
            if handler is None:
                return ChangeResult(
                    index=index,
                    operation=op,
                    success=False,
                    message=f"Unknown operation: {op}",
                    error=f"Unknown operation: {op}",
                )
            message = handler(change, entry, editor)
            editor.save_entry(entry)

        return ChangeResult(
            index=index,
            operation=op,
            success=True,
            message=message,
            target=entry.guid,
        )

    except Exception as e:
        logger.exception(f"Error executing change #{index + 1} ({op})")
        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=f"Error: {e}",
            error=str(e),
        )


def _target_senses(change: Change, entry: Entry, *, default_all: bool) -> List[Sense]:
    index = change.sense_index
    if index is None:
        if not entry.senses:
            raise ValidationError(f"Entry {entry.word or entry.guid} has no senses")
        return entry.senses if default_all else entry.senses[:1]
    if not 0 <= index < len(entry.senses):
        raise ValidationError(
            f"Sense index {index} out of range (entry has {len(entry.senses)})"
        )
    return [entry.senses[index]]


def _exec_set_pos(change: Change, entry: Entry, editor: LiftEditor) -> str:
    pos = str(change.params["pos"])
    senses = _target_senses(change, entry, default_all=True)
    for sense in senses:
        if sense.grammatical_info is None:
            sense.grammatical_info = GrammaticalInfo(value=pos)
        else:
            sense.grammatical_info.value = pos
    return f"Set POS of {len(senses)} sense(s) to {pos}"


def _exec_set_trait(change: Change, entry: Entry, editor: LiftEditor) -> str:
    name = str(change.params["name"])
    value = str(change.params["value"])
    kept = [t for t in entry.traits if t.name != name]
    position = next(
        (i for i, t in enumerate(entry.traits) if t.name == name), len(kept)
    )
    kept.insert(position, Trait(name, value))
    entry.traits = kept
    return f"Set trait {name}={value}"


def _exec_delete_trait(change: Change, entry: Entry, editor: LiftEditor) -> str:
    name = str(change.params["name"])
    value = change.params.get("value")
    before = len(entry.traits)
    entry.traits = [
        t for t in entry.traits
        if not (t.name == name and (value is None or t.value == str(value)))
    ]
    return f"Deleted {before - len(entry.traits)} trait(s) named {name}"


def _exec_set_gloss(change: Change, entry: Entry, editor: LiftEditor) -> str:
    lang = str(change.params.get("lang") or DEFAULT_ANALYSIS_LANG)
    text = str(change.params["text"])
    for sense in _target_senses(change, entry, default_all=False):
        sense.glosses[lang] = text
    return f"Set {lang} gloss to {text!r}"


def _exec_set_definition(change: Change, entry: Entry, editor: LiftEditor) -> str:
    lang = str(change.params.get("lang") or DEFAULT_ANALYSIS_LANG)
    text = str(change.params["text"])
    for sense in _target_senses(change, entry, default_all=False):
        sense.definitions[lang] = text
    return f"Set {lang} definition to {text!r}"


def _exec_add_relation(change: Change, entry: Entry, editor: LiftEditor) -> str:
    target = resolve_entry(editor, change.target or "")
    rel_type = str(change.params["type"])
    ref = target.entry_id or target.guid
    if any(r.type == rel_type and r.ref == ref for r in entry.relations):
        return f"Relation {rel_type} -> {ref} already present"
    entry.relations.append(Relation(type=rel_type, ref=ref))
    return f"Added relation {rel_type} -> {ref}"


def _exec_delete_relation(change: Change, entry: Entry, editor: LiftEditor) -> str:
    rel_type = str(change.params["type"])
    refs = None
    if change.target is not None:
        target = resolve_entry(editor, change.target)
        refs = {target.entry_id, target.guid} - {""}
    before = len(entry.relations)
    entry.relations = [
        r for r in entry.relations
        if not (r.type == rel_type and (refs is None or r.ref in refs))
    ]
    return f"Deleted {before - len(entry.relations)} {rel_type} relation(s)"


_HANDLERS = {
    OperationType.SET_POS.value: _exec_set_pos,
    OperationType.SET_TRAIT.value: _exec_set_trait,
    OperationType.DELETE_TRAIT.value: _exec_delete_trait,
    OperationType.SET_GLOSS.value: _exec_set_gloss,
    OperationType.SET_DEFINITION.value: _exec_set_definition,
    OperationType.ADD_RELATION.value: _exec_add_relation,
    OperationType.DELETE_RELATION.value: _exec_delete_relation,
}
