"""Structural diffing for JSON documents.

Differences are reported as a flat list of change records addressed by JSON
pointer, loosely following RFC 6902::

    {"op": "add", "path": "/tags/2", "value": "new"}
    {"op": "remove", "path": "/draft", "old": True}
    {"op": "replace", "path": "/title", "old": "Intro", "value": "Overview"}

Objects are compared key by key and arrays index by index; trailing array
elements become ``add``/``remove`` records. Removals inside one array are
listed from the highest index down so the records can be applied in order.
Identical documents produce ``None`` rather than an empty list, which callers
treat as "unchanged".
"""

from __future__ import annotations

from typing import Any, Mapping

from .json_ops import json_equal

__all__ = ["DiffEntry", "compute_diff", "escape_pointer_token"]

DiffEntry = dict[str, Any]


def compute_diff(baseline: Any, candidate: Any) -> list[DiffEntry] | None:
    """Return the change records turning *baseline* into *candidate*, or ``None``."""

    if json_equal(baseline, candidate):
        return None
    changes: list[DiffEntry] = []
    _diff_values(baseline, candidate, "", changes)
    return changes


def escape_pointer_token(token: Any) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")


def _diff_values(old: Any, new: Any, path: str, changes: list[DiffEntry]) -> None:
    if json_equal(old, new):
        return
    if isinstance(old, Mapping) and isinstance(new, Mapping):
        _diff_mappings(old, new, path, changes)
    elif isinstance(old, (list, tuple)) and isinstance(new, (list, tuple)):
        _diff_arrays(old, new, path, changes)
    else:
        changes.append({"op": "replace", "path": path, "old": old, "value": new})


def _diff_mappings(old: Mapping[Any, Any], new: Mapping[Any, Any], path: str, changes: list[DiffEntry]) -> None:
    for key, value in old.items():
        child = f"{path}/{escape_pointer_token(key)}"
        if key not in new:
            changes.append({"op": "remove", "path": child, "old": value})
        else:
            _diff_values(value, new[key], child, changes)
    for key, value in new.items():
        if key not in old:
            changes.append({"op": "add", "path": f"{path}/{escape_pointer_token(key)}", "value": value})


def _diff_arrays(old: Any, new: Any, path: str, changes: list[DiffEntry]) -> None:
    shared = min(len(old), len(new))
    for index in range(shared):
        _diff_values(old[index], new[index], f"{path}/{index}", changes)
    for index in range(len(old) - 1, shared - 1, -1):
        changes.append({"op": "remove", "path": f"{path}/{index}", "old": old[index]})
    for index in range(shared, len(new)):
        changes.append({"op": "add", "path": f"{path}/{index}", "value": new[index]})
