"""Logging setup for the JSON preview pipeline: rotating log file plus optional console."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["LOG_FORMAT", "get_log_path", "get_logger", "reset_logging", "setup_logging"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(processName)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "jsonpreview.log"

_DEFAULT_LOG_DIR = Path.home() / ".jsonpreview" / "logs"
_LOG_DIR_ENV = "JSONPREVIEW_LOG_DIR"
# The worker's pipe traffic and asyncio's debug chatter drown out pipeline logs.
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "multiprocessing")
_CONFIGURED = False
_LOG_PATH: Path | None = None
_INSTALLED_HANDLERS: list[logging.Handler] = []


def setup_logging(
    level: int | str = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Install the pipeline's root handlers and return the log file path.

    Repeated calls are no-ops unless *force* is set. The log directory is
    *log_dir*, else ``$JSONPREVIEW_LOG_DIR``, else ``~/.jsonpreview/logs``.
    """

    global _CONFIGURED, _LOG_PATH
    if _CONFIGURED and not force and _LOG_PATH is not None:
        return _LOG_PATH

    resolved_level = _coerce_level(level)
    log_path = _resolve_log_dir(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    reset_logging()
    handlers = _build_handlers(log_path, resolved_level, console, max_bytes, backup_count)
    logging.basicConfig(level=resolved_level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    _quiet_noisy_loggers(resolved_level)

    _INSTALLED_HANDLERS.extend(handlers)
    _CONFIGURED = True
    _LOG_PATH = log_path
    return log_path


def reset_logging() -> None:
    """Detach and close handlers installed by :func:`setup_logging`."""

    global _CONFIGURED, _LOG_PATH
    root = logging.getLogger()
    for handler in _INSTALLED_HANDLERS:
        root.removeHandler(handler)
        handler.close()
    _INSTALLED_HANDLERS.clear()
    _CONFIGURED = False
    _LOG_PATH = None


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_log_path() -> Path | None:
    return _LOG_PATH


def _build_handlers(
    log_path: Path,
    level: int,
    console: bool,
    max_bytes: int,
    backup_count: int,
) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    return Path(log_dir or os.environ.get(_LOG_DIR_ENV) or _DEFAULT_LOG_DIR).expanduser()


def _quiet_noisy_loggers(root_level: int) -> None:
    quiet_level = max(root_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
