"""Logging Audit module.

This module provides logging configuration, audit trail functionality and
HTML debug snapshots.
"""

from .audit import log_audit_event, log_step_exchange
from .formatters import PIIRedactingFormatter
from .html_debug import HtmlDebugSink, new_session_id
from .logger import (
    configure_logging,
    get_logger,
    get_run_logger,
    run_logging,
    RunLoggerAdapter,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_run_logger",
    "run_logging",
    "RunLoggerAdapter",
    "log_audit_event",
    "log_step_exchange",
    "PIIRedactingFormatter",
    "HtmlDebugSink",
    "new_session_id",
]
