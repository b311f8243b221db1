"""Tests for reading LIFT documents into entries."""

from pathlib import Path

import pytest

from lift_editor import FormatError, parse_lift, read_lift
from lift_editor.models import (
    DEFAULT_LIFT_VERSION,
    DEFAULT_PRODUCER,
    GrammaticalInfo,
    Note,
    Relation,
    Reversal,
    Trait,
    Translation,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _doc(body, attrs=""):
    return f'<?xml version="1.0"?>\n<lift{attrs}>{body}</lift>'


class TestRejectedInput:
    def test_not_xml(self):
        with pytest.raises(FormatError):
            parse_lift("this is not xml")

    def test_wrong_root(self):
        with pytest.raises(FormatError, match="no <lift> root"):
            parse_lift("<dictionary><entry guid='a'/></dictionary>")

    def test_no_entries(self):
        with pytest.raises(FormatError, match="<entry>"):
            parse_lift(_doc("<header/>", ' version="0.13"'))

    def test_empty_root(self):
        with pytest.raises(FormatError):
            parse_lift("<lift></lift>")

    def test_format_error_is_import_error(self):
        from lift_editor import DataImportError, LiftEditorError

        with pytest.raises(DataImportError):
            parse_lift("")
        assert issubclass(FormatError, LiftEditorError)


class TestMinimalScenario:
    def test_taboo_entry(self, minimal_lift_text):
        doc = parse_lift(minimal_lift_text)
        assert len(doc.entries) == 1
        entry = doc.entries[0]
        assert entry.guid == "g1"
        assert entry.entry_id == "taboo_g1"
        assert entry.word == "taboo"
        assert entry.forms == {"mnr": "taboo"}
        assert len(entry.senses) == 1
        assert entry.senses[0].glosses == {"en": "forbidden"}
        assert entry.senses[0].definitions == {}

    def test_dates(self, minimal_lift_text):
        entry = parse_lift(minimal_lift_text).entries[0]
        assert entry.date_created == "2024-01-01T00:00:00Z"
        assert entry.date_modified == "2024-01-02T00:00:00Z"

    def test_metadata(self, minimal_lift_text):
        doc = parse_lift(minimal_lift_text)
        assert doc.metadata.producer == "SIL.FLEx 9.1"
        assert doc.metadata.version == "0.13"
        assert doc.metadata.header is None

    def test_byte_order_mark_ignored(self, minimal_lift_text):
        doc = parse_lift("\ufeff" + minimal_lift_text)
        assert doc.entries[0].word == "taboo"

    def test_single_occurrences_are_sequences(self, minimal_lift_text):
        raw = parse_lift(minimal_lift_text).entries[0].raw
        assert isinstance(raw["lexical-unit"]["form"], list)
        assert isinstance(raw["sense"], list)
        assert isinstance(raw["sense"][0]["gloss"], list)

    def test_raw_fragment_kept(self, minimal_lift_text):
        entry = parse_lift(minimal_lift_text).entries[0]
        assert entry.raw["@_guid"] == "g1"
        assert "lexical-unit" in entry.raw


class TestFullFeatures:
    @pytest.fixture
    def doc(self, full_lift_text):
        return parse_lift(full_lift_text)

    def test_entries_in_document_order(self, doc):
        assert [e.guid for e in doc.entries] == ["e1", "e2", "e3"]

    def test_header_kept_opaque(self, doc):
        header = doc.metadata.header
        assert [r["@_id"] for r in header["ranges"]["range"]] == [
            "grammatical-info", "morph-type",
        ]
        assert header["fields"]["field"][0]["@_tag"] == "import-residue"

    def test_forms_in_order(self, doc):
        entry = doc.entries[0]
        assert entry.forms == {"mnr": "tüba", "mnr-fonipa": "tɨba"}
        assert entry.word == "tüba"

    def test_traits_and_relations(self, doc):
        entry = doc.entries[0]
        assert entry.traits == [Trait("morph-type", "stem")]
        assert entry.relations == [Relation(type="synonym", ref="pine_e2")]

    def test_sense_fields(self, doc):
        sense = doc.entries[0].senses[0]
        assert sense.id == "e1s1"
        assert sense.order == "0"
        assert sense.grammatical_info == GrammaticalInfo(
            value="Noun", traits=[Trait("inflection-class", "a")]
        )
        assert sense.glosses == {"en": "pine nut", "es": "piñón"}
        assert sense.definitions == {"en": "the edible seed of the pinyon pine"}
        assert sense.reversals == [Reversal(type="en", forms={"en": "pine nut"})]

    def test_example(self, doc):
        example = doc.entries[0].senses[0].examples[0]
        assert example.source == "field notes"
        assert example.forms == {"mnr": "tüba tukkwa"}
        assert example.translations == [
            Translation(type="Free translation", forms={"en": "eat pine nuts"})
        ]

    def test_notes(self, doc):
        assert doc.entries[0].notes == [
            Note(type="encyclopedic", forms={"en": "A staple food gathered in autumn."})
        ]
        # A note with bare text content
        assert doc.entries[2].notes == [Note(forms={"en": "See also paa"})]

    def test_derived_fields(self, doc):
        assert doc.entries[0].sense_pos_list == ["Noun", "Verb"]
        assert doc.entries[0].trait_values("morph-type") == ["stem"]
        assert doc.entries[1].word == "wŵapi"

    def test_sense_raw_not_shared_with_entry_raw(self, doc):
        entry = doc.entries[0]
        assert entry.senses[0].raw == entry.raw["sense"][0]
        assert entry.senses[0].raw is not entry.raw["sense"][0]


class TestDegradedInput:
    def test_forms_without_lang_or_text_dropped(self):
        doc = parse_lift(_doc(
            '<entry guid="a"><lexical-unit>'
            '<form><text>nolang</text></form>'
            '<form lang="mnr"><text></text></form>'
            '<form lang="mnr-x"><text>kept</text></form>'
            "</lexical-unit></entry>"
        ))
        assert doc.entries[0].forms == {"mnr-x": "kept"}
        assert doc.entries[0].word == "kept"

    def test_bare_entry(self):
        doc = parse_lift(_doc("<entry/>"))
        entry = doc.entries[0]
        assert entry.guid == ""
        assert entry.word == ""
        assert entry.senses == []
        assert entry.raw is None

    def test_missing_root_attributes_use_defaults(self):
        doc = parse_lift(_doc('<entry guid="a"/>'))
        assert doc.metadata.producer == DEFAULT_PRODUCER
        assert doc.metadata.version == DEFAULT_LIFT_VERSION

    def test_text_with_spans(self):
        doc = parse_lift(_doc(
            '<entry guid="a"><lexical-unit><form lang="mnr">'
            '<text><span lang="mnr">tü</span><span>ba</span></text>'
            "</form></lexical-unit></entry>"
        ))
        assert doc.entries[0].word == "tüba"

    def test_empty_grammatical_info_value(self):
        doc = parse_lift(_doc(
            '<entry guid="a"><sense id="s"><grammatical-info value=""/></sense></entry>'
        ))
        assert doc.entries[0].sense_pos_list == []


class TestReadLift:
    def test_read_file(self):
        doc = read_lift(FIXTURES / "minimal.lift")
        assert doc.entries[0].word == "taboo"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_lift(tmp_path / "missing.lift")
