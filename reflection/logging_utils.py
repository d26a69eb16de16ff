"""
Centralized logging utilities with JSON formatting
"""

import json
import logging
import sys
from typing import Any, Dict
from datetime import datetime, UTC

from config import get_config

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        if hasattr(record, 'extra_data'):
            log_entry.update(record.extra_data)

        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with JSON formatting"""
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(_LEVELS.get(get_config().LOG_LEVEL, logging.INFO))
        logger.propagate = False

    return logger


class StructuredLogger:
    """Logger wrapper that attaches keyword context to each record.

    Keyword arguments end up as top-level keys of the JSON log line, which is
    how provider status codes and error messages reach operators without
    being folded into the message text.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.name = name

    def _log(self, level: int, message: str, context: Dict[str, Any], exc_info: bool = False):
        extra_data = {"extra_data": context} if context else {}
        self.logger.log(level, message, extra=extra_data, exc_info=exc_info)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs, exc_info=True)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance"""
    return StructuredLogger(name)
