"""Logging for the SlipTalk server: structlog events rendered by stdlib handlers.

Store operations, phrase generation and the HTTP layer all log through
`structlog.get_logger()`. `setup_logging` is called once from the app factory;
tests install the same processor chain from `backend/conftest.py` without
handlers so `caplog` can assert on events.

LOG_FORMAT selects "json" (one object per line) or
"console"/unset. LOG_LEVEL defaults to INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_VALID_LOG_FORMATS = frozenset({"json", "console", ""})
_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Loggers that report every outbound request to the generation API.
_QUIET_LOGGERS = ("httpx", "httpcore")


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Log enum values (generation outcomes, for instance) as their plain value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, dict):
            event_dict[key] = {k: v.value if isinstance(v, Enum) else v for k, v in value.items()}
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _resolve_json_mode() -> bool:
    value = os.environ.get("LOG_FORMAT", "").lower()
    if value not in _VALID_LOG_FORMATS:
        msg = f"Invalid LOG_FORMAT={value!r}. Must be 'json', 'console', or unset."
        raise ValueError(msg)
    return value == "json"


def _resolve_log_level() -> int:
    value = os.environ.get("LOG_LEVEL", "INFO").upper()
    if value not in _VALID_LOG_LEVELS:
        msg = f"Invalid LOG_LEVEL={value!r}. Must be one of {', '.join(sorted(_VALID_LOG_LEVELS))}."
        raise ValueError(msg)
    return getattr(logging, value)


def event_processors() -> list[structlog.typing.Processor]:
    """Processor chain shared by the server and the test suite."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _serialize_enums,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _renderer(*, json_mode: bool, colors: bool) -> structlog.typing.Processor:
    if json_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def _build_formatter(*, json_mode: bool, colors: bool = False) -> logging.Formatter:
    """Build the stdlib formatter that renders structlog events for a handler."""
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _renderer(json_mode=json_mode, colors=colors),
        ],
    )


def _open_log_file(log_dir: Path | str, *, json_mode: bool) -> tuple[logging.FileHandler, Path]:
    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    file_path = dir_path / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    handler = logging.FileHandler(file_path)
    handler.setFormatter(_build_formatter(json_mode=json_mode))
    return handler, file_path


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
) -> Path | None:
    """Send events to stdout and, when log_dir is given, to a new timestamped file.

    Returns the log file path, or None when no file was opened. The server
    passes SLIPTALK_LOG_DIR here; under pytest no file is created.
    """
    json_mode = _resolve_json_mode()
    if level is None:
        level = _resolve_log_level()

    # format_exc_info runs in the formatter so tracebacks are rendered once per handler.
    structlog.configure(
        processors=event_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_build_formatter(json_mode=json_mode, colors=sys.stdout.isatty()))
    root_logger.addHandler(stdout_handler)

    if log_dir is None or _is_test():
        return None

    file_handler, file_path = _open_log_file(log_dir, json_mode=json_mode)
    root_logger.addHandler(file_handler)
    return file_path
