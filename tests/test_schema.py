"""Tests for JSON text and schema validation helpers."""

from __future__ import annotations

import json

import pytest

from jsonpreview.core.schema import (
    MAX_SCHEMA_ERRORS,
    DuplicateKeyError,
    ValidationIssue,
    reject_duplicate_keys,
    schema_validator,
    validate_json,
    validate_payload,
)
from jsonpreview.errors import JsonOperationError, PayloadValidationError

ORDER_SCHEMA = {
    "type": "object",
    "required": ["items"],
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"quantity": {"type": "integer", "minimum": 1}},
            },
        }
    },
}


def test_validate_json_accepts_blank_and_valid_text() -> None:
    assert validate_json("") == []
    assert validate_json("   \n") == []
    assert validate_json('{"items": []}', schema=ORDER_SCHEMA) == []


def test_validate_json_reports_decode_error_line() -> None:
    issues = validate_json('{\n  "a": 1,\n  "b": \n}')

    assert len(issues) == 1
    assert issues[0].line == 4
    assert issues[0].pointer is None


def test_validate_json_rejects_duplicate_keys() -> None:
    issues = validate_json('{"a": {"b": 1, "b": 2}}')

    assert [issue.message for issue in issues] == ["Duplicate key 'b' found in JSON object."]


def test_duplicate_keys_are_a_json_operation_error() -> None:
    with pytest.raises(DuplicateKeyError) as excinfo:
        json.loads('{"k": 1, "k": 1}', object_pairs_hook=reject_duplicate_keys)

    assert isinstance(excinfo.value, JsonOperationError)
    assert excinfo.value.key == "k"
    assert json.loads('{"k": 1}', object_pairs_hook=reject_duplicate_keys) == {"k": 1}


def test_validate_payload_reports_json_pointer() -> None:
    issues = validate_payload({"items": [{"quantity": 0}]}, ORDER_SCHEMA)

    assert len(issues) == 1
    assert issues[0].pointer == "/items/0/quantity"
    assert issues[0].describe().startswith("/items/0/quantity: 0 is less than the minimum")


def test_pointer_tokens_are_escaped() -> None:
    schema = {"type": "object", "properties": {"a/b": {"type": "string"}}}

    issues = validate_payload({"a/b": 1}, schema)

    assert issues[0].pointer == "/a~1b"


def test_root_issue_has_empty_pointer() -> None:
    issues = validate_payload([], ORDER_SCHEMA)

    assert issues == [ValidationIssue(message="[] is not of type 'object'", pointer="")]
    assert issues[0].describe() == "[] is not of type 'object'"


def test_validate_payload_reports_invalid_schema() -> None:
    issues = validate_payload({}, {"type": "not-a-type"})

    assert issues and issues[0].message.startswith("Invalid JSON schema")


def test_validate_payload_caps_error_count() -> None:
    schema = {"type": "array", "items": {"type": "string"}}

    issues = validate_payload(list(range(MAX_SCHEMA_ERRORS + 10)), schema)

    assert len(issues) == MAX_SCHEMA_ERRORS + 1
    assert issues[-1].message == "Too many validation errors; stopping early."


def test_schema_validator_keeps_valid_payload() -> None:
    validator = schema_validator(ORDER_SCHEMA)

    assert validator({"items": [{"quantity": 2}]}) is None


def test_schema_validator_raises_with_summary() -> None:
    validator = schema_validator(ORDER_SCHEMA)

    with pytest.raises(PayloadValidationError) as excinfo:
        validator({"items": [{"quantity": 0}, {"quantity": "x"}]})

    error = excinfo.value
    assert str(error).startswith("/items/0/quantity:")
    assert str(error).endswith("(+1 more)")
    assert len(error.issues) == 2
    assert error.to_dict()["error"] == "validation_failed"
