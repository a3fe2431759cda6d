"""
Structured workflow logging

Every line is one JSON object. Application fields passed through `extra=`
are lifted onto the line, and the request correlation ID comes from the
context set by `WorkflowEngine.submit`.

Files under `settings.logs_path`:
    workflow.log  everything at the configured level
    alarms.log    CRITICAL only: committed transitions whose history entry was lost
"""
import json
import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from ..config.settings import settings
from .time import utc_now, format_iso


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

EXTRA_FIELDS = (
    "application_id",
    "action",
    "actor_user_id",
    "status",
    "history_id",
    "error_code",
)

_MAX_BYTES = 10 * 1024 * 1024


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with workflow fields when present"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": format_iso(utc_now()),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = getattr(record, "correlation_id", None) or correlation_id_var.get()
        if correlation_id:
            log_obj["correlation_id"] = correlation_id

        log_obj.update({f: getattr(record, f) for f in EXTRA_FIELDS if hasattr(record, f)})

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def _file_handler(logs_path: str, filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        os.path.join(logs_path, filename),
        maxBytes=_MAX_BYTES,
        backupCount=5,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(log_level: Optional[str] = None, logs_path: Optional[str] = None) -> None:
    """Install JSON console and file handlers on the root logger"""
    level = getattr(logging, (log_level or settings.log_level).upper())
    logs_path = logs_path or settings.logs_path
    os.makedirs(logs_path, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonFormatter())
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_file_handler(logs_path, "workflow.log", level))
    root_logger.addHandler(_file_handler(logs_path, "alarms.log", logging.CRITICAL))

    logging.getLogger("pymongo").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
