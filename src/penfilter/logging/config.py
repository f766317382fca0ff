"""Logging configuration for the filter and its command line tools."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

__all__ = ["JsonFormatter", "setup_logging"]

_ROOT_LOGGER = "penfilter"
_HANDLER_MARKER = "_penfilter_handler"

_RESERVED_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRIBUTES or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=True)


def _resolve_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    name = str(value).strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {value!r}")
    return level


def _build_handler(output: str) -> logging.Handler:
    normalised = output.strip().lower()
    if normalised == "stdout":
        return logging.StreamHandler(sys.stdout)
    if normalised == "stderr":
        return logging.StreamHandler(sys.stderr)
    destination = Path(output).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(destination, encoding="utf8")


def setup_logging(config: Mapping[str, Any] | None = None) -> logging.Logger:
    """Configure the ``penfilter`` logger from ``config["logging"]``.

    Recognised keys are ``level`` (default ``info``), ``output`` (``stdout``,
    ``stderr`` or a file path, default ``stderr``) and ``format`` (``json`` or
    ``text``, default ``json``).  Handlers installed by a previous call are
    replaced so the function can be called repeatedly.
    """

    logging_cfg = dict((config or {}).get("logging", {}) or {})
    level = _resolve_level(logging_cfg.get("level", "info"))
    output = str(logging_cfg.get("output", "stderr"))
    fmt = str(logging_cfg.get("format", "json")).lower()
    if fmt not in {"json", "text"}:
        raise ValueError(f"Unknown logging format: {fmt!r}")

    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    handler = _build_handler(output)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    setattr(handler, _HANDLER_MARKER, True)
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
