"""Shared test fixtures for lift-editor."""

from pathlib import Path

import pytest

from lift_editor import LiftEditor

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def minimal_lift_text():
    return (FIXTURES / "minimal.lift").read_text(encoding="utf-8")


@pytest.fixture
def full_lift_text():
    return (FIXTURES / "full_features.lift").read_text(encoding="utf-8")


@pytest.fixture
def editor():
    """Create an in-memory editor for testing."""
    with LiftEditor(":memory:") as ed:
        yield ed


@pytest.fixture
def editor_with_data(editor, full_lift_text):
    """Editor with the full-features sample dictionary imported."""
    editor.import_lift_string(full_lift_text)
    return editor
