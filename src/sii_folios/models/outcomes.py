"""Workflow step outcome and result data models.

Every portal step and the response classifier produce a StepOutcome; the
orchestrator branches on ``is_success`` instead of relying on exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sii_folios.models.artifact import Artifact


class StepCode(str, Enum):
    """Portal workflow steps, valued with the code reported on failure."""

    LOGIN = "login"
    REQUEST_FOLIOS = "of_solicita_folios"
    CONFIRM_FOLIOS = "of_confirma_folio"
    GENERATE_FOLIOS = "of_genera_folio"
    GENERATE_FILE = "of_genera_archivo"
    LOGOUT = "logout"


class OutcomeStatus(Enum):
    """Step processing status."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


# Failure codes that are not a step name
TIMEOUT_CODE = "timeout"
UNHANDLED_CODE = "unhandled"


@dataclass(frozen=True)
class StepOutcome:
    """Tagged result of a portal step or of response classification.

    Attributes:
        status: SUCCESS or FAILURE
        message: Human readable message (extracted from the portal on failure)
        code: Failure code: the step code, "timeout" or "unhandled".
            None for successes and for bare classifier results.
        step: Step that produced the outcome, if any
        error: Raw exception text for unhandled faults
        content: Response body of a successful GENERATE_FILE step

    Example:
        >>> outcome = StepOutcome.failure("Certificado inválido", code="login")
        >>> outcome.is_success
        False
    """

    status: OutcomeStatus
    message: str = ""
    code: Optional[str] = None
    step: Optional[StepCode] = None
    error: Optional[str] = None
    content: Optional[bytes] = None

    @classmethod
    def success(
        cls,
        message: str = "",
        step: Optional[StepCode] = None,
        content: Optional[bytes] = None,
    ) -> "StepOutcome":
        return cls(OutcomeStatus.SUCCESS, message=message, step=step, content=content)

    @classmethod
    def failure(
        cls,
        message: str,
        code: Optional[str] = None,
        step: Optional[StepCode] = None,
        error: Optional[str] = None,
    ) -> "StepOutcome":
        return cls(
            OutcomeStatus.FAILURE, message=message, code=code, step=step, error=error
        )

    @property
    def is_success(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True)
class WorkflowResult:
    """Final result of one folios workflow run.

    Attributes:
        artifact: Persisted CAF file when the run succeeded
        failure: Failing outcome when the run did not succeed
        session_id: Debug session id of the run (log and dump correlation)
    """

    artifact: Optional[Artifact] = None
    failure: Optional[StepOutcome] = None
    session_id: str = ""

    @property
    def is_success(self) -> bool:
        return self.artifact is not None and self.failure is None

    @property
    def is_fault(self) -> bool:
        """True when the run ended because of an unexpected exception."""
        return self.failure is not None and self.failure.code == UNHANDLED_CODE
