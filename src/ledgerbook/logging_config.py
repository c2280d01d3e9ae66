"""Logging configuration.

Two output styles:
- console: human-readable lines on stderr (default)
- json: one JSON object per line, for log aggregation

Environment variables:
- LOG_FORMAT: "json" or "console"
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: WARNING)
"""

import json
import logging
import logging.config
import os
from datetime import datetime, UTC
from typing import Optional


_STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
    "message",
}


def get_logging_config(level: Optional[str] = None, log_format: Optional[str] = None) -> dict:
    """Build a logging.config dictConfig for the ledgerbook loggers.

    Args:
        level: Log level name; falls back to LOG_LEVEL, then WARNING
        log_format: "json" or "console"; falls back to LOG_FORMAT, then console

    Returns:
        dictConfig mapping
    """
    level = (level or os.environ.get("LOG_LEVEL") or "WARNING").upper()
    log_format = (log_format or os.environ.get("LOG_FORMAT") or "console").lower()

    if log_format == "json":
        formatter = {"()": "ledgerbook.logging_config.JsonFormatter"}
    else:
        formatter = {
            "format": "[{asctime}] {levelname} {name} {message}",
            "style": "{",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "ledgerbook": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Apply the ledgerbook logging configuration."""
    logging.config.dictConfig(get_logging_config(level, log_format))


class JsonFormatter(logging.Formatter):
    """JSON log formatter.

    Outputs JSON lines with timestamp, level, logger, message, and any extra
    fields passed to the logger.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extras = {}
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                try:
                    json.dumps(value)
                    extras[key] = value
                except (TypeError, ValueError):
                    extras[key] = str(value)

        if extras:
            log_entry["extra"] = extras

        return json.dumps(log_entry, default=str)
