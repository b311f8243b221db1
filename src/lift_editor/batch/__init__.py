"""
Batch change request module for lift-editor.

This module applies standardized change requests written in YAML to the
entries of a LIFT dictionary.

Example usage:
    from lift_editor import LiftEditor
    from lift_editor.batch import (
        load_change_request,
        validate_change_request,
        execute_change_request,
    )

    editor = LiftEditor.from_lift("dictionary.lift")
    request = load_change_request("changes.yaml")

    validation = validate_change_request(request, editor)
    if not validation.is_valid:
        for error in validation.errors:
            print(f"[{error.index}] {error.operation}: {error.message}")

    result = execute_change_request(request, editor)
    print(f"Applied {result.success_count}/{result.total_count} changes")
"""

from .schema import (
    # Enums and constants
    OperationType as OperationType,
    REQUIRED_FIELDS as REQUIRED_FIELDS,
    OPTIONAL_FIELDS as OPTIONAL_FIELDS,
    # Data classes
    Change as Change,
    ChangeRequest as ChangeRequest,
    ValidationError as ValidationError,
    ValidationWarning as ValidationWarning,
    ValidationResult as ValidationResult,
    ChangeResult as ChangeResult,
    BatchResult as BatchResult,
)

from .parser import (
    load_change_request as load_change_request,
    ParseError as ParseError,
)

from .validator import (
    validate_change_request as validate_change_request,
)

from .executor import (
    execute_change_request as execute_change_request,
    resolve_entry as resolve_entry,
)

__all__ = [
    "OperationType",
    "REQUIRED_FIELDS",
    "OPTIONAL_FIELDS",
    "Change",
    "ChangeRequest",
    "ValidationError",
    "ValidationWarning",
    "ValidationResult",
    "ChangeResult",
    "BatchResult",
    "load_change_request",
    "ParseError",
    "validate_change_request",
    "execute_change_request",
    "resolve_entry",
]
