"""
Logging for the converter.

Every module logs through `get_logger`. Request and pipeline events go
through `log_event`, which attaches key/value fields to the record; the
text formatter renders them as `key=value` after the message and the JSON
formatter (XML2JSON_LOG_JSON=1) merges them into the line's object.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

_JSON_ENV_VALUES = {"1", "true", "yes", "on"}
_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# keys the JSON line owns; event fields never overwrite them
_RESERVED = ("ts", "level", "logger", "event", "exc")


def _fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = getattr(record, "fields", None)
    return fields if isinstance(fields, dict) else {}


def _render(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    text = str(value)
    if not text or any(c.isspace() or c in '="' for c in text):
        return json.dumps(text)
    return text


class KeyValueFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(f"{k}={_render(v)}" for k, v in _fields(record).items())
        if not pairs:
            return line
        # keep a traceback below the key/value line
        head, sep, tail = line.partition("\n")
        return f"{head} {pairs}{sep}{tail}"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base: Dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for key, value in _fields(record).items():
            if key not in _RESERVED:
                base[key] = value
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return json.dumps(base, separators=(",", ":"), default=str)


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a single stream handler attached on first use."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if os.getenv("XML2JSON_LOG_JSON", "false").lower() in _JSON_ENV_VALUES:
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(KeyValueFormatter())
        logger.addHandler(handler)
    level = os.getenv("XML2JSON_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    return logger


def log_event(logger: logging.Logger, level: int, event: str, exc_info: bool = False, **fields: Any) -> None:
    """Log `event` with `fields` attached for the formatters above."""
    logger.log(level, event, exc_info=exc_info, extra={"fields": fields})
