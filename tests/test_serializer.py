"""Tests for descriptor serialization."""

import json

import pytest

from yy_store.exceptions import SerializationError
from yy_store.parsing.yy_parser import parse
from yy_store.serialization.yy_serializer import FormatStyle, format_scalar, serialize

from conftest import make_object, make_sprite


class TestExpandedStyle:
    """Test the default expanded formatting."""

    def test_exact_output(self) -> None:
        """Test indentation and a comma after every element."""
        text = serialize({"a": 1, "b": [1, 2], "c": {}, "d": []})
        assert text == (
            '{\n'
            '  "a": 1,\n'
            '  "b": [\n'
            '    1,\n'
            '    2,\n'
            '  ],\n'
            '  "c": {},\n'
            '  "d": [],\n'
            '}'
        )

    def test_nested_object_in_array_expanded(self) -> None:
        """Test that array members are expanded unless the style says otherwise."""
        text = serialize({"items": [{"x": 1}]})
        assert '    {\n      "x": 1,\n    },' in text

    def test_key_order_kept(self) -> None:
        """Test that keys are written in insertion order."""
        text = serialize({"z": 1, "a": 2})
        assert text.index('"z"') < text.index('"a"')

    def test_final_newline(self) -> None:
        """Test the optional final newline."""
        assert serialize({"a": 1}, FormatStyle(final_newline=True)).endswith("}\n")
        assert serialize({"a": 1}).endswith("}")

    def test_custom_indent(self) -> None:
        """Test a wider indentation."""
        assert serialize({"a": 1}, FormatStyle(indent=4)) == '{\n    "a": 1,\n}'


class TestGameMakerStyle:
    """Test the IDE formatting."""

    def test_sample_round_trip_is_byte_identical(self, sample_text) -> None:
        """Test that an IDE-written descriptor comes back unchanged."""
        assert serialize(parse(sample_text), FormatStyle.gamemaker()) == sample_text

    def test_array_objects_compact(self) -> None:
        """Test that objects inside arrays are written on one line."""
        text = serialize({"eventList": [{"a": 1, "b": {"c": [1]}}]}, FormatStyle.gamemaker())
        assert '    {"a":1,"b":{"c":[1,],},},' in text


class TestFixedPoint:
    """Test that serialized output is stable under parse and serialize."""

    @pytest.mark.parametrize("style", [FormatStyle(), FormatStyle.gamemaker(), FormatStyle.strict_json()])
    def test_fixed_point(self, style) -> None:
        """Test serialize(parse(serialize(t))) == serialize(t) for every style."""
        for tree in (make_object("obj_a", parent_object="obj_b", sprite="spr_a"), make_sprite("spr_a")):
            text = serialize(tree, style)
            assert parse(text) == tree
            assert serialize(parse(text), style) == text

    def test_parse_serialize_parse_equal(self, sample_text) -> None:
        """Test that reparsing serialized output gives an equal tree."""
        tree = parse(sample_text)
        assert parse(serialize(tree)) == tree


class TestScalars:
    """Test scalar formatting."""

    def test_numbers(self) -> None:
        """Test that integers and floats keep their kind and value."""
        assert format_scalar(3) == "3"
        assert format_scalar(-0) == "0"
        assert format_scalar(0.5) == "0.5"
        assert format_scalar(1.0) == "1.0"
        assert format_scalar(1e16) == "1e+16"
        assert type(parse(format_scalar(1.0))) is float
        assert parse(format_scalar(1e16)) == 1e16

    def test_booleans_before_integers(self) -> None:
        """Test that booleans are written as literals, not numbers."""
        assert format_scalar(True) == "true"
        assert format_scalar(False) == "false"
        assert format_scalar(None) == "null"

    def test_strings_escaped(self) -> None:
        """Test that quotes and control characters are escaped."""
        assert format_scalar('a"b\n') == '"a\\"b\\n"'

    def test_non_ascii_kept(self) -> None:
        """Test that non-ASCII text is written as-is."""
        assert format_scalar("矢印") == '"矢印"'

    def test_lone_surrogate_escaped(self) -> None:
        """Test that an unpaired surrogate is written as an escape and read back unchanged."""
        text = serialize({"a": "x\ud800y"})
        assert text == '{\n  "a": "x\\ud800y",\n}'
        assert text.isascii()
        assert parse(text) == {"a": "x\ud800y"}

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, value) -> None:
        """Test that NaN and infinities cannot be written."""
        with pytest.raises(SerializationError):
            serialize({"a": value})


class TestStrictJson:
    """Test the strict JSON style."""

    def test_loadable_by_json_module(self, sample_tree) -> None:
        """Test that strict output has no trailing commas."""
        text = serialize(sample_tree, FormatStyle.strict_json())
        assert json.loads(text) == sample_tree


class TestUnserializable:
    """Test trees that cannot be written."""

    def test_cycle(self) -> None:
        """Test that a self-containing tree is rejected."""
        tree = {"a": []}
        tree["a"].append(tree)
        with pytest.raises(SerializationError, match="contains itself"):
            serialize(tree)

    def test_shared_subtree_is_not_a_cycle(self) -> None:
        """Test that the same list appearing twice is fine."""
        shared = [1, 2]
        assert parse(serialize({"a": shared, "b": shared})) == {"a": [1, 2], "b": [1, 2]}

    def test_non_string_key(self) -> None:
        """Test that object keys must be strings."""
        with pytest.raises(SerializationError, match="keys must be strings"):
            serialize({1: "a"})

    def test_unsupported_type(self) -> None:
        """Test that values outside the data model are rejected."""
        with pytest.raises(SerializationError, match="Unsupported value type"):
            serialize({"a": {1, 2}})
