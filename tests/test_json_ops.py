"""Tests for the shared JSON helpers."""

from __future__ import annotations

import math

import pytest

from jsonpreview.core.json_ops import (
    clone_json,
    format_json,
    is_composite,
    json_equal,
    parse_json,
    prettify_json_string,
)
from jsonpreview.errors import JsonOperationError


def test_format_json_uses_two_space_indent() -> None:
    assert format_json({"a": 1}) == '{\n  "a": 1\n}'
    assert format_json([1, {"b": None}]) == '[\n  1,\n  {\n    "b": null\n  }\n]'


def test_format_json_preserves_non_ascii() -> None:
    assert format_json({"name": "café"}) == '{\n  "name": "café"\n}'


def test_format_json_rejects_unserializable_values() -> None:
    with pytest.raises(JsonOperationError, match="Unable to stringify JSON"):
        format_json({"when": object()})
    with pytest.raises(JsonOperationError):
        format_json({"value": math.nan})


@pytest.mark.parametrize("value", [None, "", "   \n\t"])
def test_parse_json_rejects_empty_input(value: object) -> None:
    with pytest.raises(JsonOperationError, match="JSON input is empty."):
        parse_json(value)


def test_parse_json_reports_position_for_invalid_text() -> None:
    with pytest.raises(JsonOperationError) as excinfo:
        parse_json('{"a":')

    assert str(excinfo.value).startswith("Invalid JSON format")
    assert "line 1" in str(excinfo.value)


def test_parse_json_strips_whitespace_and_bom() -> None:
    assert parse_json('  {"a": [1, 2]}\n') == {"a": [1, 2]}
    assert parse_json("\ufeff[true]") == [True]
    assert parse_json(b'{"k": "v"}') == {"k": "v"}


def test_parse_json_passes_parsed_values_through() -> None:
    payload = {"already": "parsed"}

    assert parse_json(payload) is payload
    assert parse_json(42) == 42


def test_prettify_json_string_round_trips_compact_text() -> None:
    assert prettify_json_string('{"a":1,"b":[true]}') == '{\n  "a": 1,\n  "b": [\n    true\n  ]\n}'


def test_clone_json_isolates_nested_structures() -> None:
    original = {"items": [{"qty": 1}]}

    clone = clone_json(original)
    clone["items"][0]["qty"] = 5

    assert original == {"items": [{"qty": 1}]}
    assert clone_json("text") == "text"
    assert clone_json(None) is None


def test_is_composite_distinguishes_primitives() -> None:
    assert is_composite({}) and is_composite([])
    assert not is_composite("x")
    assert not is_composite(3.5)
    assert not is_composite(None)


def test_json_equal_uses_json_semantics() -> None:
    assert json_equal({"a": [1, 2]}, {"a": (1, 2)})
    assert json_equal(1, 1.0)
    assert not json_equal(True, 1)
    assert not json_equal({"a": 1}, {"a": 1, "b": 2})
    assert not json_equal([1], {"0": 1})
