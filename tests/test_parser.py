"""Tests for the relaxed JSON descriptor parser."""

import pytest

from yy_store.exceptions import DescriptorIOError, ParseError
from yy_store.parsing.yy_parser import DescriptorParser, parse, yy_parser


class TestParseValues:
    """Test the value tree produced for well-formed input."""

    def test_sample_descriptor_reference(self, sample_text) -> None:
        """Test that the sample object names its parent object."""
        tree = parse(sample_text)
        assert tree["parentObjectId"]["name"] == "obj_arrow_parent"
        assert tree["parentObjectId"]["path"] == "objects/obj_arrow_parent/obj_arrow_parent.yy"
        assert tree["spriteMaskId"] is None
        assert tree["eventList"][1]["eventType"] == 3

    def test_key_order_preserved(self) -> None:
        """Test that object keys keep the order they were written in."""
        tree = parse('{"z": 1, "a": 2, "m": {"y": 1, "b": 2}}')
        assert list(tree) == ["z", "a", "m"]
        assert list(tree["m"]) == ["y", "b"]

    def test_trailing_commas_optional(self) -> None:
        """Test that a trailing separator is accepted but not required."""
        assert parse('{"a": [1, 2,],}') == {"a": [1, 2]}
        assert parse('{"a": [1, 2]}') == {"a": [1, 2]}
        assert parse("[]") == []
        assert parse("{}") == {}

    def test_integers_and_floats_stay_distinct(self) -> None:
        """Test that integer and floating literals keep their Python types."""
        tree = parse('[1, 1.0, -0.5, 1e3, 2E-2, 0]')
        assert [type(v) for v in tree] == [int, float, float, float, float, int]
        assert tree[2] == -0.5
        assert tree[4] == 0.02

    def test_literals(self) -> None:
        """Test true, false and null."""
        assert parse("[true, false, null]") == [True, False, None]

    def test_string_escapes(self) -> None:
        """Test standard JSON escapes, including surrogate pairs."""
        tree = parse(r'["a\"b", "tab\tend", "\u00e9", "\ud83d\ude00", "slash\/"]')
        assert tree == ['a"b', "tab\tend", "é", "\U0001F600", "slash/"]

    def test_non_ascii_text_kept(self) -> None:
        """Test that raw non-ASCII characters pass through."""
        assert parse('{"name": "矢印"}') == {"name": "矢印"}

    def test_byte_order_mark_skipped(self) -> None:
        """Test that a leading BOM is ignored."""
        assert parse("\ufeff{\"a\": 1}") == {"a": 1}


class TestParseErrors:
    """Test that malformed input fails with a located ParseError."""

    def test_unterminated_string(self) -> None:
        """Test an unterminated string reports where the input ended."""
        with pytest.raises(ParseError) as exc_info:
            parse('{\n  "name": "obj_arrow')
        assert exc_info.value.line == 2
        assert "closing" in exc_info.value.expected
        assert exc_info.value.found == "end of input"

    def test_unbalanced_braces(self) -> None:
        """Test that a missing closing brace is reported."""
        with pytest.raises(ParseError) as exc_info:
            parse('{"a": [1, 2}')
        assert exc_info.value.expected == "',' or ']'"
        assert exc_info.value.found == "'}'"
        assert (exc_info.value.line, exc_info.value.column) == (1, 12)

    @pytest.mark.parametrize("literal", ["01", "1.", "-", ".5", "1e", "+1", "1.2.3"])
    def test_invalid_number_literal(self, literal) -> None:
        """Test that malformed numbers are rejected rather than guessed."""
        with pytest.raises(ParseError):
            parse(f"[{literal}]")

    def test_message_format(self) -> None:
        """Test the line:column prefix of the error message."""
        with pytest.raises(ParseError, match=r"^1:6: expected ':', found '1'$"):
            parse('{"a" 1}')

    def test_trailing_data(self) -> None:
        """Test that content after the root value is an error."""
        with pytest.raises(ParseError, match="end of input"):
            parse('{"a": 1} {"b": 2}')

    def test_double_trailing_comma(self) -> None:
        """Test that only a single trailing comma is tolerated."""
        with pytest.raises(ParseError):
            parse("[1,,]")

    def test_control_character_in_string(self) -> None:
        """Test that raw control characters inside strings are rejected."""
        with pytest.raises(ParseError):
            parse('["a\nb"]')

    def test_comments_not_supported(self) -> None:
        """Test that comments are not part of the grammar."""
        with pytest.raises(ParseError):
            parse('{"a": 1 // note\n}')

    def test_nesting_limit(self) -> None:
        """Test that nesting deeper than the configured maximum fails."""
        parser = DescriptorParser(max_depth=3)
        assert parser.parse("[[[1]]]") == [[[1]]]
        with pytest.raises(ParseError, match="nesting depth"):
            parser.parse("[[[[1]]]]")

    def test_empty_input(self) -> None:
        """Test that empty text is not a descriptor."""
        with pytest.raises(ParseError, match="expected a value"):
            parse("   ")


class TestDuplicateKeys:
    """Test duplicate key handling."""

    def test_last_value_wins_and_warning_recorded(self) -> None:
        """Test that the last value is kept at the first key position."""
        document = yy_parser.parse_with_source('{\n  "a": 1,\n  "b": 2,\n  "a": 3,\n}')
        assert document.value == {"a": 3, "b": 2}
        assert list(document.value) == ["a", "b"]
        assert len(document.duplicate_keys) == 1
        warning = document.duplicate_keys[0]
        assert warning.location == "a"
        assert (warning.line, warning.column) == (4, 3)

    def test_nested_duplicate_location(self) -> None:
        """Test that nested duplicates carry a dotted location."""
        document = yy_parser.parse_with_source('{"eventList": [{"eventNum": 0, "eventNum": 1}]}')
        assert document.duplicate_keys[0].location == "eventList[0].eventNum"


class TestSourceMap:
    """Test source position tracking."""

    def test_locations_map_to_line_and_column(self, sample_text) -> None:
        """Test that dotted locations resolve to 1-based positions."""
        document = yy_parser.parse_with_source(sample_text)
        assert document.source_map[""] == {"line": 1, "column": 1}
        assert document.source_map["parentObjectId"]["line"] == 10
        assert document.source_map["parentObjectId.name"] == {"line": 11, "column": 13}
        assert document.source_map["eventList[1]"]["line"] == 27
        assert document.source_map["eventList[1].eventType"]["line"] == 27

    def test_parse_does_not_track(self) -> None:
        """Test that plain parse returns only the value."""
        assert parse('{"a": 1}') == {"a": 1}


class TestLoadFile:
    """Test reading descriptor files."""

    def test_load_file(self, tmp_path, sample_text) -> None:
        """Test that a file is read as UTF-8 and parsed with source tracking."""
        path = tmp_path / "obj_arrow_up.yy"
        path.write_text(sample_text, encoding="utf-8")
        document = yy_parser.load_file(path)
        assert document.value["name"] == "obj_arrow_up"
        assert "eventList[0]" in document.source_map

    def test_missing_file(self, tmp_path) -> None:
        """Test that a missing file raises DescriptorIOError."""
        with pytest.raises(DescriptorIOError, match="not found"):
            yy_parser.load_file(tmp_path / "missing.yy")
