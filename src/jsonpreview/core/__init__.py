"""Pure JSON operations shared by the worker process and the local fallback."""

from .json_diff import DiffEntry, compute_diff
from .json_ops import (
    clone_json,
    format_json,
    is_composite,
    json_equal,
    parse_json,
    prettify_json_string,
)

__all__ = [
    "DiffEntry",
    "clone_json",
    "compute_diff",
    "format_json",
    "is_composite",
    "json_equal",
    "parse_json",
    "prettify_json_string",
]
