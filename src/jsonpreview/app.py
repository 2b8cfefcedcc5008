"""Application bootstrap helpers and the ``jsonpreview`` command line."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .core.json_ops import EMPTY_INPUT_MESSAGE
from .core.schema import ValidationIssue, validate_json
from .errors import JsonOperationError, JsonPipelineError
from .services.settings import PipelineSettings, SettingsStore
from .utils import logging as logging_utils
from .workers.client import JsonWorkerClient

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIFFERENT = 1
EXIT_INVALID = 1
EXIT_FAILURE = 2


def configure_logging(debug: bool = False, *, log_dir: Path | str | None = None, force: bool = False) -> Path:
    """Configure structured logging for the application."""

    level = logging.DEBUG if debug else logging.INFO
    log_path = logging_utils.setup_logging(level, log_dir=log_dir, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> PipelineSettings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except Exception as exc:  # pragma: no cover - defensive path
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = PipelineSettings()
    return settings


def create_worker_client(settings: PipelineSettings) -> JsonWorkerClient:
    """Build a worker client configured from *settings*."""

    client = JsonWorkerClient.from_settings(settings)
    _LOGGER.debug(
        "Worker client created (enabled=%s, timeout=%.2fs, start_method=%s)",
        settings.worker_enabled,
        client.timeout,
        settings.worker_start_method or "default",
    )
    return client


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``jsonpreview`` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    settings_path = args.settings_path or os.environ.get("JSONPREVIEW_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    if args.no_worker:
        cli_overrides["worker_enabled"] = False

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    debug = args.debug or settings.debug_logging
    configure_logging(debug, log_dir=settings.log_dir)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return EXIT_OK
    if args.command is None:
        parser.print_help()
        return EXIT_FAILURE

    client = create_worker_client(settings)
    try:
        return asyncio.run(_run_command(args, client))
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown path
        _LOGGER.info("Shutdown requested by user.")
        return EXIT_FAILURE
    finally:
        client.close()


async def _run_command(args: argparse.Namespace, client: JsonWorkerClient) -> int:
    try:
        if args.command == "prettify":
            return await _prettify(args.file, client)
        if args.command == "validate":
            return await _validate(args.file, args.schema, client)
        return await _diff(args.baseline, args.candidate, client)
    except (JsonPipelineError, OSError) as exc:
        _LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"jsonpreview: {exc}", file=sys.stderr)
        return EXIT_FAILURE


async def _prettify(source: str, client: JsonWorkerClient, *, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    document = await client.parse(_read_source(source))
    destination.write(await client.stringify(document))
    destination.write("\n")
    return EXIT_OK


async def _diff(baseline: str, candidate: str, client: JsonWorkerClient, *, stream: TextIO | None = None) -> int:
    destination = stream or sys.stdout
    left = await client.parse(_read_source(baseline))
    right = await client.parse(_read_source(candidate))
    changes = await client.diff(left, right)
    if changes is None:
        destination.write("No differences.\n")
        return EXIT_OK
    destination.write(await client.stringify(changes))
    destination.write("\n")
    return EXIT_DIFFERENT


async def _validate(
    source: str,
    schema_source: str | None,
    client: JsonWorkerClient,
    *,
    stream: TextIO | None = None,
) -> int:
    destination = stream or sys.stdout
    schema = None
    if schema_source:
        schema = await client.parse(_read_source(schema_source))
        if not isinstance(schema, dict):
            raise JsonOperationError("JSON schema must be an object.")
    label = "<stdin>" if source == "-" else source
    text = _read_source(source)
    if text.strip():
        issues = validate_json(text, schema=schema)
    else:
        issues = [ValidationIssue(message=EMPTY_INPUT_MESSAGE)]
    if not issues:
        destination.write(f"{label}: valid\n")
        return EXIT_OK
    for issue in issues:
        location = f"{label}:{issue.line}" if issue.line else label
        destination.write(f"{location}: {issue.describe()}\n")
    return EXIT_INVALID


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).expanduser().read_text(encoding="utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsonpreview",
        description="Format and compare JSON documents through the background JSON worker.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--no-worker",
        action="store_true",
        help="Run every operation in-process instead of starting the worker process.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.jsonpreview/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    subparsers = parser.add_subparsers(dest="command")
    prettify = subparsers.add_parser("prettify", help="Print FILE as two-space indented JSON.")
    prettify.add_argument("file", metavar="FILE", help="JSON file to format, or '-' for stdin.")
    validate = subparsers.add_parser(
        "validate",
        help="Check FILE for syntax errors and duplicate keys; exits 1 when problems are found.",
    )
    validate.add_argument("file", metavar="FILE", help="JSON file to check, or '-' for stdin.")
    validate.add_argument("--schema", metavar="SCHEMA", help="JSON Schema file the document must satisfy.")
    diff = subparsers.add_parser(
        "diff",
        help="Compare two JSON files; exits 0 when identical and 1 when they differ.",
    )
    diff.add_argument("baseline", metavar="BASELINE")
    diff.add_argument("candidate", metavar="CANDIDATE")
    return parser


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = PipelineSettings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(PipelineSettings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    optional = type(None) in get_args(annotation)
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if optional and normalized.lower() in {"none", "null", ""}:
        return None
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    if get_origin(annotation) is None:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if args else annotation


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: PipelineSettings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "log_path": str(logging_utils.get_log_path() or ""),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
    }
    output = {"settings": asdict(settings), "meta": metadata}
    json.dump(output, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("JSONPREVIEW_"))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
