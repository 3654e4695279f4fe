"""Audit trail functionality for the SII folios service.

This module provides structured audit logging for workflow outcomes and
portal exchanges.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional, Union

from .logger import get_logger

logger = get_logger(__name__)

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def log_audit_event(
    event_type: str,
    details: Dict[str, Any],
    log: Optional[LoggerLike] = None,
) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields for tracking
    folio requests. Audit events are logged at INFO level for successful
    operations and ERROR level for failures.

    Args:
        event_type: Type of operation (e.g., "FOLIOS_OBTAINED", "FOLIOS_FAILED")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - session_id: Debug session id of the run
                - tipo_dte: Document type code
                - folio_inicial / folio_final: Requested range
                - filename: CAF file name (on success)
                - code: Failure code (on failure)
                - error_message: Error details (if status is failure)
                - duration: Operation duration in seconds
        log: Logger to write to (e.g. a per-run adapter). Defaults to the
            module logger.

    Example:
        >>> log_audit_event("FOLIOS_OBTAINED", {
        ...     "status": "success",
        ...     "tipo_dte": "33",
        ...     "folio_inicial": 100,
        ...     "folio_final": 104,
        ...     "duration": 4.2
        ... })
    """
    log = log or logger

    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    # Key fields in consistent order
    field_order = [
        "status",
        "session_id",
        "tipo_dte",
        "folio_inicial",
        "folio_final",
        "filename",
        "code",
        "error_message",
        "duration",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    status = details.get("status", "unknown")
    if status == "failure":
        log.error(audit_message)
    else:
        log.info(audit_message)


def log_step_exchange(
    step: str,
    status_code: int,
    response_size: int,
    request_fields: Dict[str, Any],
    log: Optional[LoggerLike] = None,
) -> None:
    """Log one portal request/response exchange.

    The header line is logged at INFO level and the submitted fields at
    DEBUG level to keep INFO logs compact.

    Args:
        step: Step code (e.g., "of_confirma_folio")
        status_code: HTTP status returned by the portal
        response_size: Response body size in bytes
        request_fields: Form fields sent with the request
        log: Logger to write to. Defaults to the module logger.
    """
    log = log or logger
    log.info(
        f"STEP [{step}] | "
        f"status_code={status_code} | "
        f"response_size={response_size} bytes"
    )
    log.debug(f"STEP REQUEST [{step}] | fields={request_fields}")
