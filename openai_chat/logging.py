"""
openai-chat-stream - Structured JSON Logging

Structured logging for the library's ``openai_chat`` logger namespace.

Features:
- JSON-formatted logs for easy parsing
- Log level and format configurable via environment
- Sensitive data redaction (credentials never reach the output)
- Records propagate to the application's handlers until setup_logging is called

Usage:
    from openai_chat.logging import setup_logging, get_logger

    setup_logging(level="DEBUG")

    logger = get_logger(__name__)
    logger.info("Stream finished", snapshots=3)

Output:
    {"timestamp": "2024-01-15T10:30:00+00:00", "level": "INFO",
     "logger": "openai_chat.client", "message": "Stream finished", "snapshots": 3}
"""

import os
import sys
import json
import logging
from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone


LIBRARY_LOGGER = "openai_chat"

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRIBUTES = {
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "module.name",
        "message": "Log message",
        ... additional fields
    }
    """

    # Fields to redact from logs
    SENSITIVE_FIELDS = {
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "auth", "credential", "private_key",
    }

    def __init__(
        self,
        include_timestamp: bool = True,
        redact_sensitive: bool = True,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.getMessage()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        """Check if field name indicates sensitive data."""
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


class StructuredLogger:
    """
    Structured logger wrapper with convenience methods.

    Keyword arguments other than the stdlib ones become extra fields.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context = context or {}

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, *args, **kwargs):
        """Internal log method with bound context."""
        extra = dict(self._context)
        extra.update(kwargs.pop("extra", {}))

        for key in list(kwargs):
            if key not in {"exc_info", "stack_info", "stacklevel"}:
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        """Log debug message."""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        """Log info message."""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        """Log warning message."""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def with_context(self, **context_fields) -> "StructuredLogger":
        """Return a logger that adds these fields to every record."""
        context = dict(self._context)
        context.update(context_fields)
        return StructuredLogger(self._logger, context)


# Module-level state
_logging_configured = False


def setup_logging(
    level: Union[str, int] = "WARNING",
    json_output: bool = True,
    redact_sensitive: bool = True,
) -> None:
    """
    Setup structured logging for the library logger.

    Installs a stderr handler on the ``openai_chat`` namespace and stops
    its records from reaching the root logger. The application's root
    logger is left alone.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON formatter (True) or standard formatter (False)
        redact_sensitive: Redact sensitive fields like api keys
    """
    global _logging_configured

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    library_logger.setLevel(level)

    for handler in library_logger.handlers[:]:
        library_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_output:
        formatter = JSONFormatter(redact_sensitive=redact_sensitive)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    library_logger.addHandler(handler)
    library_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    The first call sets up the library namespace. When
    ``OPENAI_CHAT_LOG_LEVEL`` or ``OPENAI_CHAT_LOG_FORMAT`` is set this
    calls ``setup_logging``; otherwise only a ``NullHandler`` is attached
    and records propagate to the application's handlers.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance
    """
    global _logging_configured

    if not _logging_configured:
        level = os.getenv("OPENAI_CHAT_LOG_LEVEL")
        log_format = os.getenv("OPENAI_CHAT_LOG_FORMAT")

        if level or log_format:
            setup_logging(
                level=level or "WARNING",
                json_output=(log_format or "json").lower() == "json",
            )
        else:
            logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())
            _logging_configured = True

    return StructuredLogger(logging.getLogger(name))
