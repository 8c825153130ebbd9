"""Logging configuration.

Two formats, selected by ``log_format`` in docmirror.yaml:
- text: rich console output for interactive use
- json: one JSON object per line for log shippers
"""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.logging import RichHandler

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class JSONFormatter(logging.Formatter):
    """Formatter that emits each record as a JSON string."""

    def format(self, record: logging.LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }
        for key in ("task_id", "repository", "installation_id", "language"):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_logging(level: str = "info", fmt: str = "text") -> None:
    """Configure the root logger once. Later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(_LEVELS.get(level, logging.INFO))
    if root.handlers:
        return

    if fmt == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def mask_token(token: str | None) -> str:
    """Mask a secret so only the last 4 characters are visible."""
    if not token or len(token) <= 4:
        return "****"
    return f"****{token[-4:]}"
