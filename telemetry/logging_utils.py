from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from telemetry.pii import sanitize_log_payload, scrub_text

SERVICE_NAME = "rentsight"
_DEFAULT_LEVEL = "INFO"
_CONFIGURED = False

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def _safe_value(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras: Dict[str, Any] = {
            key: _safe_value(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": scrub_text(record.getMessage()),
            **sanitize_log_payload(extras),
        }
        if record.exc_info:
            payload["exc_info"] = scrub_text(self.formatException(record.exc_info))
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """Install the JSON handler on the root logger once per process."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    level_name = (level or os.getenv("LOG_LEVEL", _DEFAULT_LEVEL)).upper()
    resolved = logging.getLevelName(level_name)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger()
    if force:
        for existing in list(root.handlers):
            if isinstance(existing.formatter, JsonFormatter):
                root.removeHandler(existing)
    if force or not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
    root.setLevel(resolved)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
