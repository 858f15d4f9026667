"""
Structured logging configuration with optional Loki integration.

This module provides:
- A human-readable console format for development
- JSON-formatted records for staging/production and the error file
- Per-connection context fields (connection_id, room_id, user_id)
- Optional Loki handler for centralized log aggregation
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from typing import Any

from relay.constants import LOKI_MAX_LOG_SIZE_BYTES
from relay.settings import app_settings

# Context fields of the connection currently being served
log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "connection_id",
    }
)


def set_log_context(**kwargs: Any) -> None:
    """
    Set contextual fields for structured logging.

    Every WebSocket connection is served in its own task, so fields set here
    are attached to all log records emitted while serving that connection.

    Args:
        **kwargs: Key-value pairs to add to log context.

    Example:
        >>> set_log_context(connection_id="5f0c", room_id="lobby")
        >>> logger.info("Member joined")  # Will include connection_id and room_id
    """
    log_context.set({**log_context.get(), **kwargs})


def get_log_context() -> dict[str, Any]:
    """Get current log context."""
    return log_context.get()


def clear_log_context() -> None:
    """Clear the log context (useful when a connection closes)."""
    log_context.set({})


class StructuredJSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs the standard fields (timestamp, level, logger, message), the
    current connection context, exception information and any extra fields
    passed to the logging call.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "environment": app_settings.ENV.value,
        }

        context = get_log_context()
        if context:
            log_data.update(context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        json_str = json.dumps(log_data, default=str)
        if len(json_str) > LOKI_MAX_LOG_SIZE_BYTES:
            log_data["message"] = (
                log_data["message"][: LOKI_MAX_LOG_SIZE_BYTES - 1000]
                + "... [TRUNCATED]"
            )
            json_str = json.dumps(log_data, default=str)

        return json_str


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Prefixes every line with the id of the connection being served, or
    ``-`` outside of a connection.
    """

    INFO_FMT = "%(asctime)s - [%(connection_id)s] %(levelname)s: %(message)s"
    ERROR_FMT = "%(asctime)s - [%(connection_id)s] %(levelname)s: %(module)s.%(funcName)s:%(lineno)d - %(message)s"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        info = logging.Formatter(self.INFO_FMT, datefmt="%Y-%m-%d %H:%M:%S")
        detailed = logging.Formatter(
            self.ERROR_FMT, datefmt="%Y-%m-%d %H:%M:%S"
        )
        self._formatters = {
            logging.INFO: info,
            logging.WARNING: detailed,
            logging.ERROR: detailed,
            logging.DEBUG: detailed,
        }

    def format(self, record: logging.LogRecord) -> str:
        connection_id = get_log_context().get("connection_id")
        record.connection_id = connection_id[:8] if connection_id else "-"

        formatter = self._formatters.get(
            record.levelno, self._formatters[logging.INFO]
        )
        return formatter.format(record)


def setup_logging() -> logging.Logger:
    """
    Configure the relay logger.

    This function sets up:
    - Console handler, human-readable or JSON depending on LOG_CONSOLE_FORMAT
    - File handler for errors (JSON format)
    - Loki handler for centralized logging (if enabled)

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger("relay")
    logger.setLevel(getattr(logging, app_settings.LOG_LEVEL.upper()))
    logger.propagate = False

    # Clear existing handlers to avoid duplicates on reload
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    if app_settings.LOG_CONSOLE_FORMAT == "json":
        console_handler.setFormatter(StructuredJSONFormatter())
    else:
        console_handler.setFormatter(HumanReadableFormatter())
    logger.addHandler(console_handler)

    try:
        log_dir = os.path.dirname(app_settings.LOG_FILE_PATH)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(app_settings.LOG_FILE_PATH)
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(StructuredJSONFormatter())
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not create file handler: {e}")

    if app_settings.LOKI_ENABLED:
        try:
            from logging_loki import LokiHandler

            loki_handler = LokiHandler(
                url=f"{app_settings.LOKI_URL}/loki/api/v{app_settings.LOKI_VERSION}/push",
                tags={
                    "application": "session-relay",
                    "environment": app_settings.ENV.value,
                },
                version=app_settings.LOKI_VERSION,
            )
            loki_handler.setLevel(logging.INFO)
            loki_handler.setFormatter(StructuredJSONFormatter())
            logger.addHandler(loki_handler)
            logger.info("Loki handler configured successfully")
        except Exception as e:
            logger.warning(f"Could not configure Loki handler: {e}")

    # Disable logging during pytest runs
    if sys.argv[0].split("/")[-1] in ["pytest"]:
        logging.disable(logging.ERROR)

    return logger


logger = setup_logging()
