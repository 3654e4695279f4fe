"""Heuristic classification of SII portal responses.

The portal reports failures inside ordinary 200 pages, so every response
body is inspected for error markers. The rules are a best-effort heuristic
and are kept exactly as the portal integration has always applied them:

1. The literal substring ``Error`` or ``error`` anywhere in the body marks a
   failure. The message is taken from the first ``<h1>``-``<h6>`` element,
   else the first ``<p>``, else the first ``<div>``.
2. An expired-session notice marks a failure.
3. Anything else is a success.

Note that rule 1 matches attribute values and script text as well, and is
case-sensitive apart from the two spellings listed.
"""

import re
from typing import Optional

from sii_folios.logging_audit.logger import get_logger
from sii_folios.models.outcomes import StepOutcome

logger = get_logger(__name__)

ERROR_MARKERS = ("Error", "error")

SESSION_EXPIRED_MARKERS = (
    "sesión ha expirado",
    "sesion ha expirado",
    "ha finalizado su sesión",
)

# Tried in order; the first pattern with a match supplies the message
MESSAGE_PATTERNS = (
    re.compile(r"<[h][1-6]>(.+?)</[h][1-6]>"),
    re.compile(r"<p[^>]*>(.+?)</p>"),
    re.compile(r"<div[^>]*>(.+?)</div>"),
)

UNSPECIFIED_ERROR_MESSAGE = "unspecified error"
SESSION_EXPIRED_MESSAGE = "session has expired"


def extract_error_message(html: str) -> Optional[str]:
    """Return the text of the first heading, paragraph or div in the page.

    Matching is non-greedy and line-bound (``.`` does not cross newlines).

    Args:
        html: Response body

    Returns:
        Trimmed element text, or None when no element matches
    """
    for pattern in MESSAGE_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1).strip()
    return None


def classify_response(html: str) -> StepOutcome:
    """Classify a portal response body as success or failure.

    Args:
        html: Response body (HTML, or the CAF XML on the last step)

    Returns:
        StepOutcome.success() or StepOutcome.failure(message)

    Example:
        >>> classify_response("<h2>Error: RUT no autorizado</h2>").message
        'Error: RUT no autorizado'
        >>> classify_response("<p>Listo</p>").is_success
        True
    """
    if any(marker in html for marker in ERROR_MARKERS):
        message = extract_error_message(html) or UNSPECIFIED_ERROR_MESSAGE
        logger.debug(f"Error detected in portal response: {message}")
        return StepOutcome.failure(message)

    if any(marker in html for marker in SESSION_EXPIRED_MARKERS):
        logger.debug("Expired session detected in portal response")
        return StepOutcome.failure(SESSION_EXPIRED_MESSAGE)

    return StepOutcome.success()
