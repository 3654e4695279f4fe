"""Models module.

This module provides data models and dataclasses for the application.
"""

from sii_folios.models.artifact import Artifact
from sii_folios.models.folios import Credential, FolioJob, FolioRequest, document_count
from sii_folios.models.identity import Rut, parse_rut
from sii_folios.models.outcomes import (
    OutcomeStatus,
    StepCode,
    StepOutcome,
    WorkflowResult,
)

__all__ = [
    "Artifact",
    "Credential",
    "FolioJob",
    "FolioRequest",
    "OutcomeStatus",
    "Rut",
    "StepCode",
    "StepOutcome",
    "WorkflowResult",
    "document_count",
    "parse_rut",
]
