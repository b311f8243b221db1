"""
Tests for batch change request functionality.
"""
import pytest

from lift_editor.batch import (
    BatchResult,
    ChangeRequest,
    OperationType,
    ParseError,
    execute_change_request,
    load_change_request,
    resolve_entry,
    validate_change_request,
)
from lift_editor.exceptions import EntityNotFoundError, ValidationError
from lift_editor.models import Entry, Relation, Trait

YAML_REQUEST = """\
session:
  name: Mark verbs
  description: Part of speech fixes
changes:
  - operation: set_pos
    entry: pa
    pos: Verb
  - operation: delete_entry
    entry: e2
"""


def _request(*changes):
    return load_change_request({"changes": list(changes)})


class TestParser:
    """Tests for YAML parsing."""

    def test_load_from_file(self, tmp_path):
        yaml_file = tmp_path / "changes.yaml"
        yaml_file.write_text(YAML_REQUEST, encoding="utf-8")

        request = load_change_request(yaml_file)

        assert request.session_name == "Mark verbs"
        assert request.session_description == "Part of speech fixes"
        assert request.source_file == yaml_file
        assert [c.operation for c in request.changes] == ["set_pos", "delete_entry"]

    def test_load_from_path_string(self, tmp_path):
        yaml_file = tmp_path / "changes.yml"
        yaml_file.write_text(YAML_REQUEST, encoding="utf-8")
        assert len(load_change_request(str(yaml_file)).changes) == 2

    def test_load_from_string(self):
        request = load_change_request(YAML_REQUEST)
        assert request.source_file is None
        assert request.changes[0].params == {"entry": "pa", "pos": "Verb"}

    def test_load_from_dict(self):
        request = load_change_request(
            {"changes": [{"operation": "delete_entry", "entry": "e1"}]}
        )
        assert request.session_name is None
        assert request.changes[0].entry == "e1"

    def test_line_numbers(self):
        request = load_change_request(YAML_REQUEST)
        assert [c.line_number for c in request.changes] == [5, 8]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_change_request(tmp_path / "missing.yaml")

    def test_invalid_yaml(self):
        with pytest.raises(ParseError):
            load_change_request("changes:\n  - operation: [unclosed\n")

    def test_root_must_be_mapping(self):
        with pytest.raises(ParseError, match="mapping"):
            load_change_request("- a\n- b\n")

    def test_missing_changes(self):
        with pytest.raises(ParseError, match="changes"):
            load_change_request({"session": {"name": "x"}})

    def test_empty_changes(self):
        with pytest.raises(ParseError, match="empty"):
            load_change_request({"changes": []})

    def test_missing_operation(self):
        with pytest.raises(ParseError, match="operation") as exc_info:
            load_change_request("changes:\n  - entry: pa\n")
        assert exc_info.value.line == 2

    def test_change_properties(self):
        request = _request(
            {"operation": "set_gloss", "entry": 42, "text": "x", "sense": 1}
        )
        change = request.changes[0]
        assert change.entry == "42"
        assert change.target is None
        assert change.sense_index == 1


class TestValidator:
    """Tests for change request validation."""

    def test_valid_without_editor(self):
        result = validate_change_request(load_change_request(YAML_REQUEST))
        assert result.is_valid
        assert result.error_count == 0

    def test_unknown_operation(self):
        result = validate_change_request(_request({"operation": "explode", "entry": "pa"}))
        assert not result.is_valid
        assert result.errors[0].field == "operation"

    def test_missing_required_field(self):
        result = validate_change_request(_request({"operation": "set_pos", "entry": "pa"}))
        assert [e.field for e in result.errors] == ["pos"]

    def test_blank_required_field(self):
        result = validate_change_request(
            _request({"operation": "set_trait", "entry": "pa", "name": " ", "value": "x"})
        )
        assert [e.field for e in result.errors] == ["name"]

    @pytest.mark.parametrize("sense", [-1, "first", True])
    def test_bad_sense_index(self, sense):
        result = validate_change_request(
            _request({"operation": "set_gloss", "entry": "pa", "text": "x", "sense": sense})
        )
        assert [e.field for e in result.errors] == ["sense"]

    def test_unknown_field_warns(self):
        result = validate_change_request(
            _request({"operation": "delete_entry", "entry": "pa", "colour": "red"})
        )
        assert result.is_valid
        assert result.warning_count == 1

    def test_entry_reference_checked(self, editor_with_data):
        result = validate_change_request(
            _request({"operation": "delete_entry", "entry": "missing"}),
            editor_with_data,
        )
        assert not result.is_valid
        assert result.errors[0].field == "entry"

    def test_reference_by_guid_or_word(self, editor_with_data):
        result = validate_change_request(
            _request(
                {"operation": "delete_entry", "entry": "e1"},
                {"operation": "add_relation", "entry": "pa", "target": "wŵapi", "type": "compare"},
            ),
            editor_with_data,
        )
        assert result.is_valid
        assert result.warning_count == 0

    def test_ambiguous_word_is_error(self, editor_with_data):
        editor_with_data.save_entry(Entry(guid="x", forms={"mnr": "pa"}))
        result = validate_change_request(
            _request({"operation": "delete_entry", "entry": "pa"}),
            editor_with_data,
        )
        assert not result.is_valid
        assert result.errors[0].field == "entry"
        assert "matches 2 entries" in result.errors[0].message

    def test_skip_reference_check(self, editor_with_data):
        result = validate_change_request(
            _request({"operation": "delete_entry", "entry": "missing"}),
            editor_with_data,
            check_references=False,
        )
        assert result.is_valid


class TestResolveEntry:
    def test_by_guid(self, editor_with_data):
        assert resolve_entry(editor_with_data, "e2").word == "wŵapi"

    def test_by_word(self, editor_with_data):
        assert resolve_entry(editor_with_data, "pa").guid == "e3"

    def test_not_found(self, editor_with_data):
        with pytest.raises(EntityNotFoundError):
            resolve_entry(editor_with_data, "missing")

    def test_ambiguous(self, editor_with_data):
        editor_with_data.save_entry(Entry(guid="x", forms={"mnr": "pa"}))
        with pytest.raises(ValidationError):
            resolve_entry(editor_with_data, "pa")


class TestExecutor:
    """Tests for change execution."""

    def _run(self, editor, *changes, dry_run=False):
        return execute_change_request(_request(*changes), editor, dry_run=dry_run)

    def test_set_pos_all_senses(self, editor_with_data):
        result = self._run(editor_with_data, {"operation": "set_pos", "entry": "tüba", "pos": "Adverb"})
        assert result.success_count == 1
        assert editor_with_data.get_entry("e1").sense_pos_list == ["Adverb"]

    def test_set_pos_one_sense(self, editor_with_data):
        self._run(editor_with_data, {"operation": "set_pos", "entry": "e1", "pos": "Noun", "sense": 1})
        assert editor_with_data.unique_pos_values() == ["Noun"]

    def test_set_trait_replaces(self, editor_with_data):
        self._run(editor_with_data, {"operation": "set_trait", "entry": "e1", "name": "morph-type", "value": "root"})
        assert editor_with_data.get_entry("e1").traits == [Trait("morph-type", "root")]

    def test_set_trait_adds(self, editor_with_data):
        self._run(editor_with_data, {"operation": "set_trait", "entry": "e1", "name": "status", "value": "checked"})
        assert editor_with_data.get_entry("e1").trait_values("status") == ["checked"]

    def test_delete_trait(self, editor_with_data):
        self._run(editor_with_data, {"operation": "delete_trait", "entry": "e2", "name": "morph-type", "value": "stem"})
        assert editor_with_data.get_entry("e2").trait_values("morph-type") == ["root"]
        self._run(editor_with_data, {"operation": "delete_trait", "entry": "e2", "name": "morph-type"})
        assert editor_with_data.get_entry("e2").traits == []

    def test_set_gloss_default_sense_and_lang(self, editor_with_data):
        self._run(editor_with_data, {"operation": "set_gloss", "entry": "e2", "text": "pinyon pine"})
        assert editor_with_data.get_entry("e2").senses[0].glosses == {"en": "pinyon pine"}

    def test_set_definition_with_lang(self, editor_with_data):
        self._run(editor_with_data, {"operation": "set_definition", "entry": "e1", "sense": 1, "lang": "es", "text": "recoger piñones"})
        assert editor_with_data.get_entry("e1").senses[1].definitions == {"es": "recoger piñones"}

    def test_add_relation_uses_entry_id(self, editor_with_data):
        self._run(editor_with_data, {"operation": "add_relation", "entry": "pa", "target": "e1", "type": "compare"})
        assert editor_with_data.get_entry("e3").relations == [Relation("compare", "tüba_e1")]

    def test_add_relation_not_duplicated(self, editor_with_data):
        self._run(editor_with_data, {"operation": "add_relation", "entry": "e1", "target": "e2", "type": "synonym"})
        assert len(editor_with_data.get_entry("e1").relations) == 1

    def test_delete_relation(self, editor_with_data):
        self._run(editor_with_data, {"operation": "delete_relation", "entry": "e1", "type": "synonym", "target": "e2"})
        assert editor_with_data.get_entry("e1").relations == []

    def test_delete_entry(self, editor_with_data):
        result = self._run(editor_with_data, {"operation": "delete_entry", "entry": "wŵapi"})
        assert result.changed_guids == ["e2"]
        assert editor_with_data.entry_count() == 2

    def test_edits_are_exported(self, editor_with_data):
        from lift_editor import parse_lift

        self._run(editor_with_data, {"operation": "set_definition", "entry": "e2", "text": "a pine tree"})
        entry = parse_lift(editor_with_data.export_lift()).entries[1]
        assert entry.senses[0].definitions == {"en": "a pine tree"}

    def test_failures_isolated(self, editor_with_data):
        result = self._run(
            editor_with_data,
            {"operation": "delete_entry", "entry": "missing"},
            {"operation": "set_gloss", "entry": "e3", "text": "x", "sense": 5},
            {"operation": "set_pos", "entry": "e3", "pos": "Verb"},
        )
        assert isinstance(result, BatchResult)
        assert (result.total_count, result.success_count, result.failure_count) == (3, 1, 2)
        assert result.changes[0].error
        assert "out of range" in result.changes[1].message
        assert editor_with_data.get_entry("e3").sense_pos_list == ["Verb"]

    def test_dry_run_changes_nothing(self, editor_with_data):
        result = self._run(
            editor_with_data,
            {"operation": "delete_entry", "entry": "e1"},
            dry_run=True,
        )
        assert result.dry_run
        assert result.success_count == 1
        assert editor_with_data.entry_count() == 3
        assert editor_with_data.get_history() == []

    def test_history_recorded(self, editor_with_data):
        self._run(editor_with_data, {"operation": "set_gloss", "entry": "e3", "text": "river"})
        updates = editor_with_data.get_history(entity_id="e3", operation="UPDATE")
        assert [r.field_name for r in updates] == ["senses"]


class TestSchema:
    def test_operation_values(self):
        assert {op.value for op in OperationType} == {
            "set_pos", "set_trait", "delete_trait", "set_gloss",
            "set_definition", "add_relation", "delete_relation", "delete_entry",
        }

    def test_change_request_defaults(self):
        request = ChangeRequest(changes=[])
        assert request.session_name is None
        assert request.source_file is None
