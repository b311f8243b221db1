"""
Validation for batch change requests.

Provides both schema validation (required fields, types) and
referential validation (entries and relation targets resolve in the store).
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from ..exceptions import EntityNotFoundError
from .schema import (
    Change,
    ChangeRequest,
    OPTIONAL_FIELDS,
    OperationType,
    REQUIRED_FIELDS,
    SENSE_OPERATIONS,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)

if TYPE_CHECKING:
    from ..editor import LiftEditor

logger = logging.getLogger(__name__)


def validate_change_request(
    request: ChangeRequest,
    editor: Optional[LiftEditor] = None,
    check_references: bool = True,
) -> ValidationResult:
    """Validate a change request.

    Args:
        request: The change request to validate
        editor: Editor whose entries the references are checked against
        check_references: If True and an editor is given, verify that
            ``entry`` and ``target`` resolve to stored entries

    Returns:
        ValidationResult with errors and warnings
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    for i, change in enumerate(request.changes):
        change_errors, change_warnings = _validate_change(
            change,
            index=i,
            editor=editor if check_references else None,
        )
        errors.extend(change_errors)
        warnings.extend(change_warnings)

    logger.debug(
        "Validated %d changes: %d errors, %d warnings",
        len(request.changes), len(errors), len(warnings),
    )
    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_change(
    change: Change,
    index: int,
    editor: Optional[LiftEditor],
) -> Tuple[List[ValidationError], List[ValidationWarning]]:
    """Validate a single change operation.

    Returns:
        Tuple of (errors, warnings)
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    def error(field: str, message: str) -> None:
        errors.append(
            ValidationError(
                index=index,
                operation=change.operation,
                field=field,
                message=message,
                line_number=change.line_number,
            )
        )

    valid_operations = {op.value for op in OperationType}
    if change.operation not in valid_operations:
        error(
            "operation",
            f"Unknown operation '{change.operation}'. Valid: {', '.join(sorted(valid_operations))}",
        )
        return errors, warnings

    op = change.operation
    for field in REQUIRED_FIELDS[op]:
        value = change.params.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            error(field, f"Missing required field '{field}'")

    known = set(REQUIRED_FIELDS[op]) | set(OPTIONAL_FIELDS[op])
    for field in change.params:
        if field not in known:
            warnings.append(
                ValidationWarning(
                    index=index,
                    operation=op,
                    message=f"Unknown field '{field}' is ignored",
                    line_number=change.line_number,
                )
            )

    if op in SENSE_OPERATIONS and "sense" in change.params:
        sense = change.params["sense"]
        if isinstance(sense, bool) or not isinstance(sense, int) or sense < 0:
            error("sense", "Field 'sense' must be a non-negative integer")

    if errors or editor is None:
        return errors, warnings

    for field in ("entry", "target"):
        ref = change.params.get(field)
        if ref is None:
            continue
        problem = _check_reference(editor, str(ref))
        if problem:
            error(field, problem)

    return errors, warnings


def _check_reference(editor: LiftEditor, ref: str) -> Optional[str]:
    """Check that *ref* names exactly one stored entry.

    Returns:
        Error message if it does not, None if it does
    """
    try:
        editor.get_entry(ref)
        return None
    except EntityNotFoundError:
        pass
    matches = editor.find_by_word(ref)
    if not matches:
        return f"No entry with guid or word '{ref}'"
    if len(matches) > 1:
        return f"Word '{ref}' matches {len(matches)} entries; use a guid"
    return None
