"""Logging helpers for the trial summary report."""
from __future__ import annotations

import json
import logging
from logging import LogRecord
from pathlib import Path
from typing import Any, Dict

CONTEXT_FIELDS = ("source", "path", "row", "participant_id")


class JsonFormatter(logging.Formatter):
    """Formats log records as single line JSON objects."""

    def format(self, record: LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        for name in CONTEXT_FIELDS:
            value = record.__dict__.get(name)
            if value is not None and value != "":
                payload[name] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(log_path: str | Path | None = None, level: int = logging.INFO) -> None:
    """Configure root logger to use JSON formatting."""
    handler: logging.Handler
    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


__all__ = ["configure_logging", "JsonFormatter"]
