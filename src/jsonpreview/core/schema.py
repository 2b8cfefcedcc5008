"""Checks JSON documents against a JSON Schema and reports issues by JSON pointer.

Issue locations use the same pointer syntax as :func:`compute_diff`, so a
validation report and a diff of the same document refer to values identically.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from itertools import islice
from json import JSONDecodeError
from typing import Any, Callable, Iterable, Mapping, Sequence

import jsonschema

from ..errors import JsonOperationError, PayloadValidationError
from .json_diff import escape_pointer_token
from .json_ops import describe_decode_error

__all__ = [
    "MAX_SCHEMA_ERRORS",
    "DuplicateKeyError",
    "ValidationIssue",
    "reject_duplicate_keys",
    "schema_validator",
    "validate_json",
    "validate_payload",
]

MAX_SCHEMA_ERRORS = 25
_TRUNCATED_MESSAGE = "Too many validation errors; stopping early."


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One problem found in a document.

    ``pointer`` locates the offending value (``""`` is the document root);
    ``line`` is only known for syntax errors.
    """

    message: str
    pointer: str | None = None
    line: int | None = None

    def describe(self) -> str:
        if self.pointer:
            return f"{self.pointer}: {self.message}"
        return self.message


class DuplicateKeyError(JsonOperationError):
    """An object in the document names the same key twice."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Duplicate key '{key}' found in JSON object.")
        self.key = key


def reject_duplicate_keys(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """``object_pairs_hook`` that refuses objects with repeated keys."""

    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise DuplicateKeyError(key)
        result[key] = value
    return result


def validate_json(text: str, *, schema: Mapping[str, Any] | None = None) -> list[ValidationIssue]:
    """Parse *text* strictly and, when *schema* is given, validate the result.

    Blank text has nothing to report. Syntax errors and duplicate keys stop
    validation with a single issue.
    """

    if not (text or "").strip():
        return []
    try:
        document = json.loads(text, object_pairs_hook=reject_duplicate_keys)
    except DuplicateKeyError as exc:
        return [ValidationIssue(message=exc.message)]
    except JSONDecodeError as exc:
        return [ValidationIssue(message=describe_decode_error(exc), line=exc.lineno)]
    if not schema:
        return []
    return validate_payload(document, schema)


def validate_payload(payload: Any, schema: Mapping[str, Any]) -> list[ValidationIssue]:
    """Validate an already-parsed payload against *schema*."""

    validator_cls = jsonschema.validators.validator_for(schema)
    try:
        validator_cls.check_schema(schema)
    except jsonschema.exceptions.SchemaError as exc:
        return [ValidationIssue(message=f"Invalid JSON schema: {exc.message}")]

    found = islice(validator_cls(schema).iter_errors(payload), MAX_SCHEMA_ERRORS + 1)
    issues = [ValidationIssue(message=error.message, pointer=_pointer(error.absolute_path)) for error in found]
    if len(issues) > MAX_SCHEMA_ERRORS:
        issues = issues[:MAX_SCHEMA_ERRORS]
        issues.append(ValidationIssue(message=_TRUNCATED_MESSAGE))
    return issues


def schema_validator(schema: Mapping[str, Any]) -> Callable[[Any], None]:
    """Build a preview ``validator`` that raises when a payload violates *schema*.

    Returning ``None`` on success keeps the payload unchanged.
    """

    def _validate(payload: Any) -> None:
        issues = validate_payload(payload, schema)
        if not issues:
            return None
        messages = [issue.describe() for issue in issues]
        summary = messages[0] if len(messages) == 1 else f"{messages[0]} (+{len(messages) - 1} more)"
        raise PayloadValidationError(summary, issues=messages)

    return _validate


def _pointer(path: Sequence[Any]) -> str:
    return "".join(f"/{escape_pointer_token(token)}" for token in path)
