"""Structured logging utilities for the service.

One shared ``intelliserver`` logger owns the console handler; module loggers
(``intelliserver.service``, ``intelliserver.stream`` ...) propagate to it so
there is a single place to switch JSON/plain output, level, and file sink.

``log_event`` emits one JSON payload per line. ``normalized_log_event`` wraps
it and guarantees the canonical keys (``structured``, ``phase``, ``emitted``;
``error_code``, ``attempt`` and ``tokens`` only when set) so request and
stream events can be filtered the same way.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Iterator, Mapping, Optional

from .log_support import JsonFormatter, LogContext

BASE_LOGGER_NAME = "intelliserver"
LOG_LEVEL_ENV = "INTELLISERVER_LOG_LEVEL"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Marker attributes on the handlers this module owns.
_READY = "_intelliserver_ready"
_CONSOLE = "_intelliserver_console"
_FILE = "_intelliserver_file"

_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


def _formatter(json_mode: bool) -> logging.Formatter:
    if json_mode:
        return JsonFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")


def _to_level(value: int | str | None, default: int) -> int:
    """Resolve a numeric level or a level name; unknown names give ``default``."""
    if isinstance(value, int):
        return value
    name = (value or "").strip().upper()
    name = _LEVEL_ALIASES.get(name, name)
    resolved = logging.getLevelName(name) if name else None
    return resolved if isinstance(resolved, int) else default


def _owned(logger: logging.Logger) -> Iterator[logging.Handler]:
    return (h for h in logger.handlers if getattr(h, _CONSOLE, False) or getattr(h, _FILE, False))


def _set_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for handler in _owned(logger):
        handler.setLevel(level)


def _console_handler(json_mode: bool, level: int) -> logging.StreamHandler:
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(json_mode))
    console.setLevel(level)
    setattr(console, _CONSOLE, True)
    return console


def _base_logger(json_mode: bool, level: int) -> logging.Logger:
    """Return the shared logger, installing its console handler on first use.

    Later calls keep the configured level and formatter, except that a set
    ``INTELLISERVER_LOG_LEVEL`` still wins. The console handler follows the
    current ``sys.stderr`` (pytest capture, uvicorn reload); a handler whose
    stream was closed underneath it is replaced instead of re-pointed, since
    re-pointing flushes the old stream first.
    """
    logger = logging.getLogger(BASE_LOGGER_NAME)
    env_level = os.getenv(LOG_LEVEL_ENV)

    if not getattr(logger, _READY, False):
        desired = _to_level(env_level, default=level)
        logger.handlers[:] = [_console_handler(json_mode, desired)]
        logger.propagate = False
        logger.setLevel(desired)
        setattr(logger, _READY, True)
        return logger

    if env_level:
        _set_level(logger, _to_level(env_level, default=logger.level))
    for handler in list(logger.handlers):
        if not getattr(handler, _CONSOLE, False):
            continue
        stream = getattr(handler, "stream", None)
        if stream is None or getattr(stream, "closed", False):
            logger.removeHandler(handler)
            with contextlib.suppress(Exception):
                handler.close()
            keep_json = isinstance(handler.formatter, JsonFormatter)
            logger.addHandler(_console_handler(keep_json, logger.level))
            continue
        if stream is not sys.stderr and isinstance(handler, logging.StreamHandler):
            with contextlib.suppress(Exception):
                handler.setStream(sys.stderr)
    return logger


def get_logger(name: str = BASE_LOGGER_NAME, json_mode: bool = True, level: int = logging.INFO) -> logging.Logger:
    """Return ``name`` as a child of the shared logger, configuring it on first use."""
    base = _base_logger(json_mode=json_mode, level=level)
    if name == BASE_LOGGER_NAME:
        return base
    child = logging.getLogger(name)
    child.setLevel(logging.NOTSET)
    child.propagate = True
    return child


def configure_logger(
    *,
    level: int | str | None = None,
    file_path: Optional[str] = None,
    json_mode: bool = True,
) -> logging.Logger:
    """Apply service logging settings to the shared logger.

    Parameters
    ----------
    level:
        Numeric level or level name. ``None`` keeps the current level.
    file_path:
        Write to this path through a rotating handler as well. ``None``
        detaches a previously attached file handler.
    json_mode:
        JSON lines (default) or plain text, for console and file alike.

    Handlers attached by callers are left untouched.
    """
    logger = get_logger(BASE_LOGGER_NAME, json_mode=json_mode)
    if level is not None:
        _set_level(logger, _to_level(level, default=logger.level))

    target = os.path.abspath(os.path.expanduser(file_path)) if file_path else None
    keep: Optional[logging.Handler] = None
    for handler in list(logger.handlers):
        if not getattr(handler, _FILE, False):
            continue
        if target and getattr(handler, "baseFilename", None) == target:
            keep = handler
            continue
        logger.removeHandler(handler)
        handler.close()

    if target and keep is None:
        os.makedirs(os.path.dirname(target), exist_ok=True)
        keep = RotatingFileHandler(
            target, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
        )
        setattr(keep, _FILE, True)
        keep.setLevel(logger.level)
        logger.addHandler(keep)

    for handler in _owned(logger):
        handler.setFormatter(_formatter(json_mode))
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Emit ``event`` as a single-line JSON payload.

    ``ctx`` is merged first, then ``fields``. Keys whose value is ``None`` are
    dropped unless ``keep_none`` is set.
    """
    if not logger.isEnabledFor(level):
        return
    payload: Dict[str, Any] = {"event": event, **(ctx.to_dict() if ctx else {})}
    payload.update(fields if keep_none else {k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


REQUIRED_NORMALIZED_KEYS = ("structured", "phase", "emitted")
OPTIONAL_NORMALIZED_KEYS = ("error_code", "attempt", "tokens")


def normalized_log_event(  # noqa: PLR0913
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    phase: str,
    attempt: int | None = None,
    error_code: str | None = None,
    emitted: bool | None = None,
    tokens: Any = None,
    structured: bool = True,
    level: int = logging.INFO,
    **extra_fields: Any,
) -> None:
    """Emit ``event`` with the canonical key set.

    Every key of ``REQUIRED_NORMALIZED_KEYS`` is present (``None`` kept). The
    ``OPTIONAL_NORMALIZED_KEYS`` appear only when given a value. ``extra_fields``
    never overwrite a normalized value that is already set; ``None`` extras
    are dropped.
    """
    if isinstance(tokens, Mapping):
        tokens = dict(tokens)
    elif tokens is not None:
        tokens = {"value": repr(tokens)}
    fields: Dict[str, Any] = {
        "structured": structured,
        "phase": phase,
        "emitted": emitted,
    }
    for key, value in (("error_code", error_code), ("attempt", attempt), ("tokens", tokens)):
        if value is not None:
            fields[key] = value
    for key, value in extra_fields.items():
        if value is not None and fields.get(key) is None:
            fields[key] = value
    log_event(logger, event, ctx, level=level, keep_none=True, **fields)


__all__ = [
    "BASE_LOGGER_NAME",
    "LOG_LEVEL_ENV",
    "LogContext",
    "get_logger",
    "configure_logger",
    "log_event",
    "normalized_log_event",
    "REQUIRED_NORMALIZED_KEYS",
    "OPTIONAL_NORMALIZED_KEYS",
]
