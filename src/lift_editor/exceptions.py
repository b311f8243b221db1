"""Custom exception hierarchy for lift-editor."""


class LiftEditorError(Exception):
    """Base exception for all lift-editor errors."""


class ValidationError(LiftEditorError):
    """Invalid data (unknown sort key, bad operation arguments)."""


class EntityNotFoundError(LiftEditorError):
    """Entity doesn't exist in the database."""


class DuplicateEntityError(LiftEditorError):
    """Entity with same guid already exists."""


class DataImportError(LiftEditorError):
    """Failed to import data."""


class FormatError(DataImportError):
    """Document is not a recognizable LIFT file (no root or no entries)."""


class DatabaseError(LiftEditorError):
    """Schema version mismatch, connection failure."""
