"""Logging configuration and logger factory for the SII folios service.

This module provides centralized logging configuration with support for:
- Console and file handlers with different log levels
- Log rotation to prevent unbounded file growth
- PII redaction via custom formatters
- Per-run loggers honouring the per-request logging toggle
- A run-scoped filter silencing every module logger of a disabled run
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator, MutableMapping, Optional

from .formatters import PIIRedactingFormatter

# Constants
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("storage") / "logs" / "log.txt"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

# Track if logging has been configured
_logging_configured = False

# Logging toggle of the run active in the current context
_run_logging_enabled: ContextVar[bool] = ContextVar("run_logging_enabled", default=True)

# Module-level logger for this module
logger = logging.getLogger(__name__)


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Configure logging for the SII folios service.

    Sets up both console and file handlers with appropriate log levels and formatting.
    This function is idempotent - it can be called multiple times safely.

    Args:
        level: Log level for console output (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               File handler always uses DEBUG level.
        log_file: Path to log file. If None, uses DEFAULT_LOG_FILE.
        redact_pii: Whether to redact RUTs and names from logs

    Raises:
        ValueError: If invalid log level is provided
        RuntimeError: If log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", redact_pii=True)
        >>> configure_logging(level="INFO", log_file=Path("storage/logs/log.txt"))
    """
    global _logging_configured

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    if log_file is None:
        log_file = DEFAULT_LOG_FILE

    root_logger = logging.getLogger()

    # If already configured, remove existing handlers to avoid duplicates
    if _logging_configured:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    # Set root logger to DEBUG to allow all messages through
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)
    )
    root_logger.addHandler(console_handler)

    log_dir = log_file.parent
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_dir}. "
            f"Ensure write permissions are available. Error: {e}"
        ) from e

    # File handler - DEBUG and above with rotation
    try:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)
        )
        root_logger.addHandler(file_handler)
    except OSError as e:
        # Log to console if file handler fails, but don't fail completely
        root_logger.warning(
            f"Failed to create file handler for {log_file}: {e}. "
            f"Logging to console only."
        )

    _logging_configured = True


class RunLoggingFilter(logging.Filter):
    """Drop records emitted inside a run whose logging is disabled.

    The toggle lives in a context variable, so concurrent runs served by
    different threads do not silence each other.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return _run_logging_enabled.get()


RUN_LOGGING_FILTER = RunLoggingFilter()


@contextmanager
def run_logging(enabled: bool) -> Iterator[None]:
    """Apply a run's logging toggle to every logger from get_logger().

    Args:
        enabled: False to drop all records until the block exits

    Example:
        >>> with run_logging(config.logging.enabled):
        ...     workflow.run(job)
    """
    token = _run_logging_enabled.set(enabled)
    try:
        yield
    finally:
        _run_logging_enabled.reset(token)


def get_logger(module_name: str) -> logging.Logger:
    """Get a logger for the specified module.

    The logger carries RUN_LOGGING_FILTER, so it falls silent inside a
    ``run_logging(False)`` block.

    Args:
        module_name: Name of the module, typically __name__

    Returns:
        Configured logger instance for the module
    """
    module_logger = logging.getLogger(module_name)
    if RUN_LOGGING_FILTER not in module_logger.filters:
        module_logger.addFilter(RUN_LOGGING_FILTER)
    return module_logger


class RunLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter scoped to one workflow run.

    Prefixes every message with the run's debug session id, so log lines can
    be matched with the HTML snapshots of the same run, and drops every
    record when logging was disabled for the request.

    Example:
        >>> run_logger = get_run_logger(logger, "20250101_120000_a1b2c3", enabled=True)
        >>> run_logger.info("Login successful")
    """

    def __init__(self, logger: logging.Logger, session_id: str, enabled: bool = True) -> None:
        super().__init__(logger, {"session_id": session_id})
        self.session_id = session_id
        self.enabled = enabled

    def isEnabledFor(self, level: int) -> bool:
        if not self.enabled:
            return False
        return super().isEnabledFor(level)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.session_id}] {msg}", kwargs


def get_run_logger(
    base_logger: logging.Logger, session_id: str, enabled: bool = True
) -> RunLoggerAdapter:
    """Create the per-run logger used by the folios workflow.

    Args:
        base_logger: Module logger to delegate to
        session_id: Debug session id of the run
        enabled: False to silence the run (per-request enableLogging=false)

    Returns:
        RunLoggerAdapter instance
    """
    return RunLoggerAdapter(base_logger, session_id, enabled)
