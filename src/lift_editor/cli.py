"""
Command-line interface for lift-editor.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .batch import (
    BatchResult,
    ParseError,
    ValidationResult,
    execute_change_request,
    load_change_request,
    validate_change_request,
)
from .editor import LiftEditor
from .exceptions import LiftEditorError

DEFAULT_DB_PATH = "lift-editor.db"


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the lift-editor CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except LiftEditorError as e:
        print(f"\n  [ERROR] {e}")
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lift-editor",
        description="Import, search, edit and export LIFT dictionaries",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    # Shared by every subcommand
    db_parent = argparse.ArgumentParser(add_help=False)
    db_parent.add_argument(
        "--db",
        type=Path,
        default=Path(DEFAULT_DB_PATH),
        help=f"Dictionary database (default: {DEFAULT_DB_PATH})",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        parents=[db_parent],
        help="Replace the database contents with a .lift file",
    )
    import_parser.add_argument("file", type=Path, help="LIFT file to import")
    import_parser.set_defaults(func=cmd_import)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        parents=[db_parent],
        help="Write the database contents to a .lift file",
    )
    export_parser.add_argument("output", type=Path, help="Destination file")
    export_parser.set_defaults(func=cmd_export)

    # search command
    search_parser = subparsers.add_parser(
        "search",
        parents=[db_parent],
        help="Search entries by word, gloss, definition or example",
    )
    search_parser.add_argument("query", nargs="?", default="", help="Search text")
    search_parser.add_argument("--pos", type=str, help="Only entries with this part of speech")
    search_parser.add_argument("--morph-type", type=str, help="Only entries with this morph type")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of results to show (default: 20)",
    )
    search_parser.set_defaults(func=cmd_search)

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        parents=[db_parent],
        help="Show dictionary statistics",
    )
    stats_parser.set_defaults(func=cmd_stats)

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        parents=[db_parent],
        help="Validate a change request file",
    )
    validate_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    validate_parser.add_argument(
        "--no-check-refs",
        action="store_true",
        help="Skip referential validation (entry existence checks)",
    )
    validate_parser.set_defaults(func=cmd_validate)

    # apply command
    apply_parser = subparsers.add_parser(
        "apply",
        parents=[db_parent],
        help="Apply changes from a request file",
    )
    apply_parser.add_argument(
        "file",
        type=Path,
        help="YAML file containing change request",
    )
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate execution without making changes",
    )
    apply_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    apply_parser.set_defaults(func=cmd_apply)

    # history command
    history_parser = subparsers.add_parser(
        "history",
        parents=[db_parent],
        help="View the edit history",
    )
    history_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of records to show (default: 20)",
    )
    history_parser.add_argument(
        "--entry",
        type=str,
        help="Only records for this entry guid",
    )
    history_parser.set_defaults(func=cmd_history)

    return parser


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    print(f"\nImporting {args.file}...")
    try:
        with LiftEditor(args.db) as editor:
            count = editor.import_lift(args.file)
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1
    print(f"  Imported {count} entries into {args.db}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle export command."""
    with LiftEditor(args.db) as editor:
        editor.export_lift(args.output)
        count = editor.entry_count()
    print(f"\nExported {count} entries to {args.output}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Handle search command."""
    with LiftEditor(args.db) as editor:
        entries = editor.find_entries(
            args.query,
            pos=args.pos,
            morph_type=args.morph_type,
        )

    if not entries:
        print("No entries found.")
        return 0

    shown = entries[:args.limit]
    print(f"\nFound {len(entries)} entries (showing {len(shown)}):\n")
    print(f"{'Word':<25} {'POS':<15} {'Gloss'}")
    print("-" * 70)
    for entry in shown:
        pos = ", ".join(entry.sense_pos_list)
        gloss = "; ".join(
            s.glosses.get("en", "") for s in entry.senses if s.glosses.get("en")
        )
        print(f"{entry.word or '(no form)':<25} {pos:<15} {gloss}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle stats command."""
    with LiftEditor(args.db) as editor:
        metadata = editor.get_metadata()
        print(f"\nDictionary: {args.db}")
        print(f"  Producer:    {metadata.producer}")
        print(f"  LIFT:        {metadata.version}")
        print(f"  Entries:     {editor.entry_count()}")
        print(f"  Senses:      {editor.sense_count()}")
        print(f"  Examples:    {editor.example_count()}")
        print(f"  POS values:  {', '.join(editor.unique_pos_values()) or '-'}")
        print(f"  Morph types: {', '.join(editor.unique_morph_types()) or '-'}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.file}...")

    try:
        request = load_change_request(args.file)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return 1
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"  Changes: {len(request.changes)}")
    if request.session_name:
        print(f"  Session: {request.session_name}")

    with LiftEditor(args.db) as editor:
        result = validate_change_request(
            request, editor, check_references=not args.no_check_refs
        )

    print("\nValidation Results:")
    _print_validation_result(result)

    if result.is_valid:
        print("\nValidation passed!")
        return 0
    else:
        print(f"\nFound {result.error_count} error(s), {result.warning_count} warning(s)")
        return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Handle apply command."""
    print(f"\nLoading {args.file}...")

    try:
        request = load_change_request(args.file)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return 1
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"  Changes: {len(request.changes)}")
    if request.session_name:
        print(f"  Session: \"{request.session_name}\"")

    with LiftEditor(args.db) as editor:
        print("\nValidating...")
        validation = validate_change_request(request, editor)

        if not validation.is_valid:
            print("\nValidation failed:")
            _print_validation_result(validation)
            print(f"\nFound {validation.error_count} error(s). Fix errors before applying.")
            return 1

        if validation.warning_count > 0:
            print("\nWarnings:")
            _print_validation_result(validation, warnings_only=True)

        if args.dry_run:
            print("\n[DRY RUN] Simulating execution...")
        elif not args.yes:
            response = input(f"\nApply {len(request.changes)} changes to {args.db}? [y/N] ")
            if response.lower() not in ("y", "yes"):
                print("Aborted.")
                return 1

        print(f"\n{'Simulating' if args.dry_run else 'Applying'} changes...")
        result = execute_change_request(request, editor, dry_run=args.dry_run)

    _print_batch_result(result)

    if result.failure_count > 0:
        return 1
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    """Handle history command."""
    with LiftEditor(args.db) as editor:
        records = editor.get_history(entity_id=args.entry)

    if not records:
        print("No edit history found.")
        return 0

    records = records[-args.limit:]
    print(f"\nEdit history (showing {len(records)}):\n")
    print(f"{'ID':<6} {'Operation':<10} {'Entity':<40} {'Field':<12} {'Date'}")
    print("-" * 90)
    for record in records:
        entity = f"{record.entity_type}:{record.entity_id}"
        print(
            f"{record.id:<6} {record.operation:<10} {entity:<40} "
            f"{record.field_name or '':<12} {record.timestamp}"
        )
    return 0


def _print_validation_result(
    result: ValidationResult,
    errors_only: bool = False,
    warnings_only: bool = False,
) -> None:
    """Print validation errors and warnings."""
    if not warnings_only:
        for error in result.errors:
            line_info = f" (line {error.line_number})" if error.line_number else ""
            print(f"  [ERROR] Change #{error.index + 1} ({error.operation}): {error.message}{line_info}")
            if error.field:
                print(f"          Field: {error.field}")

    if not errors_only:
        for warning in result.warnings:
            line_info = f" (line {warning.line_number})" if warning.line_number else ""
            print(f"  [WARN]  Change #{warning.index + 1} ({warning.operation}): {warning.message}{line_info}")


def _print_batch_result(result: BatchResult) -> None:
    """Print batch execution result."""
    print()
    for change in result.changes:
        status = "OK" if change.success else "FAILED"
        print(f"  [{change.index + 1}/{result.total_count}] {change.operation}: {status}")
        if change.message:
            print(f"         {change.message}")

    print("\nResults:")
    print(f"  Total:   {result.total_count}")
    print(f"  Success: {result.success_count}")
    print(f"  Failed:  {result.failure_count}")
    print(f"  Time:    {result.duration_seconds:.2f}s")


if __name__ == "__main__":
    sys.exit(main())
