# src/logging/logger.py — v2
"""Logger factory with JSON and text formatters.

Every record carries the current request/fingerprint context. Structured
payloads go through ``extra={"data": {...}}`` and are rendered as a
``data`` object (JSON) or ``key=value`` pairs (text).
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, TextIO

from autopost.logging.context import get_context

if TYPE_CHECKING:
    from autopost.config.settings import Settings

_ROOT_LOGGER = "autopost"

# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = ("redis", "urllib3")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context, data."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context_dict = get_context().as_dict()
        if context_dict:
            log_entry["context"] = context_dict

        data = getattr(record, "data", None)
        if data:
            log_entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.request_id:
            parts.append(f"[{ctx.request_id}]")
        if ctx.fingerprint:
            parts.append(f"({ctx.fingerprint})")
        parts.append(f": {record.getMessage()}")

        data = getattr(record, "data", None)
        if data:
            parts.append(" ".join(f"{k}={v}" for k, v in data.items()))

        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Configuration is applied by setup_logging()."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
    stream: TextIO | None = None,
) -> None:
    """Configure the root autopost logger.

    The autopost logger owns its handlers and does not propagate to the
    root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: Output format ("json" or "text").
        log_file: Path to log file (None = stdout only).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        stream: Console stream (None = stdout).
    """
    root_logger = logging.getLogger(_ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-init must not stack handlers
    root_logger.handlers.clear()
    root_logger.propagate = False

    formatter: logging.Formatter = (
        JsonFormatter() if log_format == "json" else TextFormatter()
    )

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from autopost.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            log_file, rotation=rotation, retention=retention
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_settings(settings: Settings, stream: TextIO | None = None) -> None:
    """Apply the logging section of Settings."""
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=stream,
    )
