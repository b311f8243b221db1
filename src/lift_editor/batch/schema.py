"""
Data classes and constants for the batch (mass edit) change request system.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


# =============================================================================
# Operation Types
# =============================================================================

class OperationType(str, Enum):
    """Supported batch operations."""
    SET_POS = "set_pos"
    SET_TRAIT = "set_trait"
    DELETE_TRAIT = "delete_trait"
    SET_GLOSS = "set_gloss"
    SET_DEFINITION = "set_definition"
    ADD_RELATION = "add_relation"
    DELETE_RELATION = "delete_relation"
    DELETE_ENTRY = "delete_entry"


# =============================================================================
# Field Requirements
# =============================================================================

# Every operation addresses an entry by guid or headword
REQUIRED_FIELDS: Dict[str, List[str]] = {
    OperationType.SET_POS.value: ["entry", "pos"],
    OperationType.SET_TRAIT.value: ["entry", "name", "value"],
    OperationType.DELETE_TRAIT.value: ["entry", "name"],
    OperationType.SET_GLOSS.value: ["entry", "text"],
    OperationType.SET_DEFINITION.value: ["entry", "text"],
    OperationType.ADD_RELATION.value: ["entry", "target", "type"],
    OperationType.DELETE_RELATION.value: ["entry", "type"],
    OperationType.DELETE_ENTRY.value: ["entry"],
}

OPTIONAL_FIELDS: Dict[str, List[str]] = {
    OperationType.SET_POS.value: ["sense"],
    OperationType.SET_TRAIT.value: [],
    OperationType.DELETE_TRAIT.value: ["value"],
    OperationType.SET_GLOSS.value: ["sense", "lang"],
    OperationType.SET_DEFINITION.value: ["sense", "lang"],
    OperationType.ADD_RELATION.value: [],
    OperationType.DELETE_RELATION.value: ["target"],
    OperationType.DELETE_ENTRY.value: [],
}

# Operations that take a ``sense`` index (0-based)
SENSE_OPERATIONS = {
    OperationType.SET_POS.value,
    OperationType.SET_GLOSS.value,
    OperationType.SET_DEFINITION.value,
}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Change:
    """Single change operation."""
    operation: str
    params: Dict[str, Any]
    line_number: Optional[int] = None

    @property
    def entry(self) -> Optional[str]:
        """Guid or headword of the entry the change applies to."""
        value = self.params.get("entry")
        return None if value is None else str(value)

    @property
    def target(self) -> Optional[str]:
        """Guid or headword of the relation target."""
        value = self.params.get("target")
        return None if value is None else str(value)

    @property
    def sense_index(self) -> Optional[int]:
        return self.params.get("sense")


@dataclass
class ChangeRequest:
    """Parsed change request from YAML."""
    changes: List[Change]
    session_name: Optional[str] = None
    session_description: Optional[str] = None
    source_file: Optional[Path] = None


@dataclass
class ValidationError:
    """Validation error for a specific change."""
    index: int
    operation: str
    field: str
    message: str
    line_number: Optional[int] = None


@dataclass
class ValidationWarning:
    """Validation warning for a specific change."""
    index: int
    operation: str
    message: str
    line_number: Optional[int] = None


@dataclass
class ValidationResult:
    """Result of validating a change request."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


@dataclass
class ChangeResult:
    """Result of executing a single change."""
    index: int
    operation: str
    success: bool
    message: str
    target: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of executing a batch change request."""
    total_count: int
    success_count: int
    failure_count: int
    changes: List[ChangeResult]
    duration_seconds: float
    dry_run: bool = False

    @property
    def changed_guids(self) -> List[str]:
        return [c.target for c in self.changes if c.success and c.target]
