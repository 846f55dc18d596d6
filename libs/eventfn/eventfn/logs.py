"""
Logging setup for function processes.

Plain text for local runs, or one JSON object per line in the shape Cloud
Logging parses (``severity``, ``message`` and structured fields).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

_RESERVED_LOG_RECORD_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
    "json_fields",
}

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """Format records as Cloud Logging structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["message"] = f"{payload['message']}\n{self.formatException(record.exc_info)}"

        # Fields that must sit at the top level of the entry (error events)
        json_fields = getattr(record, "json_fields", None)
        if isinstance(json_fields, dict):
            payload.update(json_fields)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in ("uvicorn.access",):
        logging.getLogger(name).setLevel(logging.WARNING)


def invocation_logger(
    function_name: str,
    invocation_id: str,
    event_id: Optional[str] = None,
) -> Union[logging.Logger, logging.LoggerAdapter]:
    """Logger handed to a handler for one invocation"""
    extra: Dict[str, Any] = {"function": function_name, "invocation_id": invocation_id}
    if event_id:
        extra["event_id"] = event_id
    return logging.LoggerAdapter(logging.getLogger(f"eventfn.functions.{function_name}"), extra)
