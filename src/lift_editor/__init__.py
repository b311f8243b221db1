__version__ = "0.1.0"

from .exceptions import (
    LiftEditorError as LiftEditorError,
    ValidationError as ValidationError,
    EntityNotFoundError as EntityNotFoundError,
    DuplicateEntityError as DuplicateEntityError,
    DataImportError as DataImportError,
    FormatError as FormatError,
    DatabaseError as DatabaseError,
)

from .models import (
    Entry as Entry,
    Sense as Sense,
    Example as Example,
    Translation as Translation,
    Reversal as Reversal,
    Relation as Relation,
    GrammaticalInfo as GrammaticalInfo,
    Note as Note,
    Trait as Trait,
    Metadata as Metadata,
    LiftDocument as LiftDocument,
    EditRecord as EditRecord,
    SortField as SortField,
    new_entry as new_entry,
)

from .reader import (
    parse_lift as parse_lift,
    read_lift as read_lift,
)

from .writer import (
    serialize_lift as serialize_lift,
    write_lift as write_lift,
)

from .editor import LiftEditor as LiftEditor

__all__ = [
    # Codec
    "parse_lift",
    "read_lift",
    "serialize_lift",
    "write_lift",
    # Editor
    "LiftEditor",
    # Models
    "Entry",
    "Sense",
    "Example",
    "Translation",
    "Reversal",
    "Relation",
    "GrammaticalInfo",
    "Note",
    "Trait",
    "Metadata",
    "LiftDocument",
    "EditRecord",
    "SortField",
    "new_entry",
    # Exceptions
    "LiftEditorError",
    "ValidationError",
    "EntityNotFoundError",
    "DuplicateEntityError",
    "DataImportError",
    "FormatError",
    "DatabaseError",
]
