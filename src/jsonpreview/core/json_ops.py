"""Pure JSON helpers shared by the background worker and the local fallback."""

from __future__ import annotations

import copy
import json
import logging
from json import JSONDecodeError
from typing import Any, Mapping

from ..errors import JsonOperationError

__all__ = [
    "EMPTY_INPUT_MESSAGE",
    "INDENT",
    "clone_json",
    "describe_decode_error",
    "format_json",
    "is_composite",
    "json_equal",
    "parse_json",
    "prettify_json_string",
]

LOGGER = logging.getLogger(__name__)

INDENT = 2
EMPTY_INPUT_MESSAGE = "JSON input is empty."
_BOM = "\ufeff"
_PRIMITIVES = (str, int, float, bool)


def format_json(data: Any) -> str:
    """Serialize *data* as two-space indented JSON."""

    try:
        return json.dumps(data, indent=INDENT, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        LOGGER.debug("Failed to stringify JSON payload", exc_info=True)
        raise JsonOperationError(f"Unable to stringify JSON: {exc}") from exc


def parse_json(value: Any) -> Any:
    """Parse JSON text, passing already-parsed values through unchanged."""

    if value is None:
        raise JsonOperationError(EMPTY_INPUT_MESSAGE)
    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise JsonOperationError("JSON input is not valid UTF-8.") from exc
    if not isinstance(value, str):
        return value

    text = value.strip()
    if text.startswith(_BOM):
        text = text[len(_BOM):].lstrip()
    if not text:
        raise JsonOperationError(EMPTY_INPUT_MESSAGE)
    try:
        return json.loads(text)
    except JSONDecodeError as exc:
        raise JsonOperationError(f"Invalid JSON format: {describe_decode_error(exc)}") from exc


def prettify_json_string(text: Any) -> str:
    """Return *text* re-rendered as indented JSON."""

    formatted = format_json(parse_json(text))
    if not formatted:
        raise JsonOperationError("Unable to format JSON string.")
    return formatted


def is_composite(value: Any) -> bool:
    return value is not None and not isinstance(value, _PRIMITIVES)


def clone_json(value: Any) -> Any:
    """Return a deep copy of composite values; primitives are returned as-is."""

    if not is_composite(value):
        return value
    try:
        return copy.deepcopy(value)
    except Exception:
        LOGGER.warning("deepcopy failed, falling back to a JSON round-trip clone", exc_info=True)
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as exc:
        raise JsonOperationError("Unable to clone JSON value.") from exc


def json_equal(left: Any, right: Any) -> bool:
    """Deep equality using JSON semantics (``true`` is not ``1``, lists equal tuples)."""

    if left is right:
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if set(left.keys()) != set(right.keys()):
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) or isinstance(right, (list, tuple)):
        if not (isinstance(left, (list, tuple)) and isinstance(right, (list, tuple))):
            return False
        if len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right))
    return left == right


def describe_decode_error(exc: JSONDecodeError) -> str:
    snippet = exc.doc.splitlines()[exc.lineno - 1].strip() if exc.doc and exc.lineno else ""
    detail = exc.msg
    if snippet:
        return f"{detail} (line {exc.lineno}, column {exc.colno}): {snippet}"
    return f"{detail} (line {exc.lineno}, column {exc.colno})"
