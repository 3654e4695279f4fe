"""Custom log formatters for the SII folios service.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts taxpayer identifiers and key material from log messages.

    Workflow logs include RUTs, the certificate holder name sent as NOMUSU
    and, on misconfiguration, PEM blocks. With redaction enabled these are
    replaced before the record reaches any handler.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(redact_pii=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        """Initialize the PIIRedactingFormatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string (optional)
            redact_pii: Whether to enable PII redaction
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # PEM blocks (certificates, keys)
            (
                re.compile(r"-----BEGIN [A-Z0-9 ]+-----.*?-----END [A-Z0-9 ]+-----", re.DOTALL),
                "[PEM-REDACTED]",
            ),
            # RUT with or without separators: 76.123.456-K, 76123456-7
            (re.compile(r"\b\d{1,2}\.?\d{3}\.?\d{3}-[\dkK]\b"), "[RUT-REDACTED]"),
            # Certificate holder name in form dumps: "NOMUSU": "JUAN PEREZ"
            (re.compile(r"(['\"]NOMUSU['\"]\s*:\s*)['\"][^'\"]*['\"]"), r"\1'[NAME-REDACTED]'"),
            # Split RUT fields: "RUT_EMP": "76123456", "rut": "12345678"
            (
                re.compile(r"(['\"](?:RUT_EMP|rut|rutcntr)['\"]\s*:\s*)['\"][^'\"]*['\"]"),
                r"\1'[RUT-REDACTED]'",
            ),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with PII redacted if enabled
        """
        original = super().format(record)

        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
