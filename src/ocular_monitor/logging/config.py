"""Structured logging configuration.

Log records emitted across the package carry an ``event`` key and other
context through ``extra=``.  :class:`JsonFormatter` serialises those extras
next to the standard fields so that every line is one JSON object.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

__all__ = ["JsonFormatter", "setup_logging"]


PACKAGE_LOGGER = "ocular_monitor"

_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=True)


def _resolve_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    name = str(value or "info").strip().upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    raise ValueError(f"Unknown logging level {value!r}")


def _resolve_handler(output: Any) -> logging.Handler:
    target = str(output or "stderr").strip()
    stream: TextIO | None = None
    if target.lower() == "stdout":
        stream = sys.stdout
    elif target.lower() == "stderr":
        stream = sys.stderr
    if stream is not None:
        return logging.StreamHandler(stream)
    path = Path(target).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf8")


def setup_logging(config: Mapping[str, Any] | None = None) -> logging.Logger:
    """Configure the package logger from the ``logging`` table of ``config``.

    Recognised keys are ``level`` (default ``info``), ``output``
    (``stdout``, ``stderr`` or a file path) and ``format`` (``json`` or
    ``text``).  Calling it again replaces the previously installed handler.
    """

    section: Mapping[str, Any] = {}
    if config is not None:
        candidate = config.get("logging", {})
        if isinstance(candidate, Mapping):
            section = candidate

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_resolve_level(section.get("level", "info")))

    for handler in list(logger.handlers):
        if getattr(handler, "_ocular_monitor_handler", False):
            logger.removeHandler(handler)
            handler.close()

    handler = _resolve_handler(section.get("output", "stderr"))
    if str(section.get("format", "json")).lower() == "text":
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())
    handler._ocular_monitor_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
