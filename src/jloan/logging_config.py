"""Centralized logging configuration for jloan.

Logging can be configured via environment variables or programmatically.
Every module obtains its logger through :func:`get_logger`; the package-level
``jloan`` logger owns the handlers.
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

from jloan.exceptions import ConfigurationError

PACKAGE_LOGGER = "jloan"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Environment variable names
ENV_LOG_LEVEL = "JLOAN_LOG_LEVEL"
ENV_LOG_FILE = "JLOAN_LOG_FILE"
ENV_LOG_FORMAT = "JLOAN_LOG_FORMAT"
ENV_STRUCTURED_LOGS = "JLOAN_STRUCTURED_LOGS"

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRIBUTES = frozenset(
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
    }
)


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON object.

        Fields passed through ``extra=`` (e.g. ``settlement_date``) are added
        to the top-level object; non-JSON values are rendered with ``str``.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def _resolve_level(level: str | None) -> int:
    """Translate a level name (argument, environment or default) to a number."""
    level_name = (level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    if level_name not in _VALID_LEVELS:
        raise ConfigurationError(
            "Invalid logging level",
            context={"log_level": level_name, "valid_levels": list(_VALID_LEVELS)},
        )
    return getattr(logging, level_name)


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the package logger.

    Args:
        name: Name of the logger (typically ``__name__`` of the calling module)

    Returns:
        Logger instance; records propagate to the ``jloan`` logger handlers

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Built notional schedule", extra={"breakpoints": 5})
    """
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: str | None = None,
    log_file: str | None = None,
    console: bool = True,
    structured: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> None:
    """Configure logging for the entire jloan package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to ``JLOAN_LOG_LEVEL`` or WARNING.
        log_file: Path to a log file. Defaults to ``JLOAN_LOG_FILE``; no file
                  logging when neither is given.
        console: Whether to log to stderr. Default: True
        structured: Whether to use JSON structured logging. Can also be
                    enabled with ``JLOAN_STRUCTURED_LOGS``.
        max_bytes: Maximum size of the log file before rotation (default: 10MB)
        backup_count: Number of rotated log files to keep (default: 5)

    Raises:
        ConfigurationError: If the level name is unknown

    Example:
        >>> configure_logging(level="DEBUG")
        >>> configure_logging(level="INFO", log_file="/var/log/jloan.log", structured=True)
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()

    log_level = _resolve_level(level)
    logger.setLevel(log_level)

    use_structured = structured or os.getenv(ENV_STRUCTURED_LOGS, "").lower() in (
        "true",
        "1",
        "yes",
    )

    if use_structured:
        formatter: logging.Formatter = StructuredFormatter(datefmt=DEFAULT_DATE_FORMAT)
    else:
        log_format = os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)
        formatter = logging.Formatter(log_format, datefmt=DEFAULT_DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_file_path = log_file or os.getenv(ENV_LOG_FILE)
    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def disable_logging() -> None:
    """Disable all jloan logging.

    Useful for tests or applications that want to suppress all output
    from the package.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Library default: stay silent unless the application configures logging.
if not logging.getLogger(PACKAGE_LOGGER).handlers:
    logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())
