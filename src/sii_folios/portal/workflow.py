"""SII folios workflow orchestration module.

This module drives one complete portal conversation:
LOGIN → REQUEST_FOLIOS → CONFIRM_FOLIOS → GENERATE_FOLIOS → GENERATE_FILE,
followed by LOGOUT on every exit path. Each step depends on the cookies left
by the previous one; the first failing step ends the run.
"""

import time
from datetime import datetime
from typing import Callable, Optional, Protocol

from requests import Timeout

from sii_folios.config.schema import Config
from sii_folios.logging_audit.audit import log_audit_event, log_step_exchange
from sii_folios.logging_audit.html_debug import HtmlDebugSink, new_session_id
from sii_folios.logging_audit.logger import (
    RunLoggerAdapter,
    get_logger,
    get_run_logger,
    run_logging,
)
from sii_folios.models.folios import FolioJob
from sii_folios.models.outcomes import (
    TIMEOUT_CODE,
    UNHANDLED_CODE,
    StepCode,
    StepOutcome,
    WorkflowResult,
)
from sii_folios.portal import forms, steps
from sii_folios.portal.classifier import classify_response
from sii_folios.portal.steps import PortalStep
from sii_folios.transport.session_client import RawResponse
from sii_folios.utils.artifact_writer import ArtifactWriter

logger = get_logger(__name__)

UNHANDLED_MESSAGE = "failed to obtain folios"


class PortalSession(Protocol):
    """Transport used by the workflow (implemented by SessionClient)."""

    def get(self, url, query=None, timeout=None, headers=None) -> RawResponse: ...

    def post_form(
        self, url, query=None, form_fields=None, timeout=None, headers=None
    ) -> RawResponse: ...

    def close(self) -> None: ...


class FoliosWorkflow:
    """Orchestrator for the complete folios workflow.

    A workflow instance may run several jobs; every run gets its own
    session from ``session_factory`` and its own debug session id.

    Attributes:
        config: Application configuration (already carrying any per-request
            overrides)
        artifact_writer: Writer persisting the CAF file

    Example:
        >>> workflow = FoliosWorkflow(config, lambda: SessionClient(config.transport, cert=cert))
        >>> result = workflow.run(job)
        >>> if result.is_success:
        ...     print(result.artifact.path)
    """

    def __init__(
        self,
        config: Config,
        session_factory: Callable[[], PortalSession],
        artifact_writer: Optional[ArtifactWriter] = None,
        debug_sink: Optional[HtmlDebugSink] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the workflow.

        Args:
            config: Application configuration
            session_factory: Callable returning a fresh portal session per run
            artifact_writer: CAF writer (defaults to storage.folios_path)
            debug_sink: HTML snapshot sink; built per run from the
                configuration when None
            clock: Source of the local time sent in GENERATE/GENERATE_FILE
        """
        self.config = config
        self._session_factory = session_factory
        self._clock = clock
        self._debug_sink = debug_sink
        self.artifact_writer = artifact_writer or ArtifactWriter(
            config.storage.folios_path, clock=clock
        )

    def run(self, job: FolioJob) -> WorkflowResult:
        """Run the workflow for one job.

        Never raises for portal or transport problems: they come back as a
        failed WorkflowResult. Logout is attempted exactly once whatever
        happens, including KeyboardInterrupt (which is then re-raised).

        Args:
            job: Folio request, credential and company RUT

        Returns:
            WorkflowResult with the artifact on success or the failing outcome
        """
        with run_logging(self.config.logging.enabled):
            return self._run(job)

    def _run(self, job: FolioJob) -> WorkflowResult:
        sink = self._debug_sink or HtmlDebugSink(
            self.config.storage.debug_path,
            new_session_id(self._clock()),
            enabled=self.config.logging.html_debug,
            clock=self._clock,
        )
        session_id = sink.session_id
        log = get_run_logger(logger, session_id, enabled=self.config.logging.enabled)

        request = job.request
        log.info(
            f"Starting folios request: tipo_dte={request.tipo_dte}, "
            f"folio_inicial={request.folio_inicial}, folio_final={request.folio_final}, "
            f"servidor={self.config.portal.servidor}"
        )
        log.info(f"Debug session id: {session_id}")

        start_time = time.time()
        client = self._session_factory()

        try:
            result = self._run_steps(client, job, sink, log)

        except Exception as unexpected_error:
            log.error(f"Unhandled error: {unexpected_error}", exc_info=True)
            result = WorkflowResult(
                failure=StepOutcome.failure(
                    UNHANDLED_MESSAGE,
                    code=UNHANDLED_CODE,
                    error=str(unexpected_error),
                ),
                session_id=session_id,
            )

        finally:
            self._logout(client, log)
            client.close()

        self._audit(job, result, time.time() - start_time, log)
        return result

    def _run_steps(
        self,
        client: PortalSession,
        job: FolioJob,
        sink: HtmlDebugSink,
        log: RunLoggerAdapter,
    ) -> WorkflowResult:
        request = job.request
        company = job.company

        step_fields = (
            (steps.LOGIN, lambda: forms.login_query(job.credential.rut)),
            (steps.REQUEST_FOLIOS, lambda: forms.request_folios_fields(company)),
            (steps.CONFIRM_FOLIOS, lambda: forms.confirm_folios_fields(company, request)),
            (
                steps.GENERATE_FOLIOS,
                lambda: forms.generate_folios_fields(
                    company, request, job.certificate_name, self._clock()
                ),
            ),
            (
                steps.GENERATE_FILE,
                lambda: forms.generate_file_fields(company, request, self._clock()),
            ),
        )

        outcome = StepOutcome.failure("no step executed")
        for step, build_fields in step_fields:
            try:
                outcome = self._execute_step(client, step, build_fields(), sink, log)
            except Timeout as timeout_error:
                log.error(f"Timeout during step {step.code.value}: {timeout_error}")
                outcome = StepOutcome.failure(
                    f"portal did not answer in time during {step.code.value}",
                    code=TIMEOUT_CODE,
                    step=step.code,
                    error=str(timeout_error),
                )
            if not outcome.is_success:
                return WorkflowResult(failure=outcome, session_id=sink.session_id)

        content = outcome.content
        log.info(f"CAF content size: {len(content)} bytes")

        artifact = self.artifact_writer.write(
            content,
            company.raw,
            request.tipo_dte,
            request.folio_inicial,
            request.folio_final,
        )
        log.info(f"Folios file saved: {artifact.path}")
        return WorkflowResult(artifact=artifact, session_id=sink.session_id)

    def _execute_step(
        self,
        client: PortalSession,
        step: PortalStep,
        fields: dict[str, str],
        sink: HtmlDebugSink,
        log: RunLoggerAdapter,
    ) -> StepOutcome:
        """Send one step's request and classify the response.

        Raises:
            requests.Timeout: If the portal does not answer in time
            requests.RequestException: On transport errors
        """
        url = self._step_url(step)
        timeout = self.config.transport.timeout_for(step.code.value)
        log.debug(f"Executing step {step.code.value}: {step.method} {url}")

        if step.method == "GET":
            response = client.get(url, query=fields, timeout=timeout)
        else:
            headers = (
                {"Accept": steps.FILE_ACCEPT_HEADER}
                if step.code is StepCode.GENERATE_FILE
                else None
            )
            response = client.post_form(
                url, query=fields, form_fields=fields, timeout=timeout, headers=headers
            )

        log_step_exchange(
            step.code.value, response.status_code, len(response.content), fields, log=log
        )

        if step.debug_name:
            sink.save(
                step.debug_name,
                response.text,
                {
                    "URL": url,
                    "Method": step.method,
                    "Status code": response.status_code,
                    "Parameters": fields,
                },
            )

        parsed = classify_response(response.text)
        if response.status_code != 200 or not parsed.is_success:
            message = parsed.message if not parsed.is_success else step.failure_message
            log.warning(
                f"Step {step.code.value} failed: {message} (HTTP {response.status_code})"
            )
            return StepOutcome.failure(message, code=step.code.value, step=step.code)

        if step.code is StepCode.GENERATE_FILE and not response.content.strip():
            log.warning(f"Step {step.code.value} failed: empty CAF body")
            return StepOutcome.failure(
                step.failure_message, code=step.code.value, step=step.code
            )

        log.info(step.success_message)
        return StepOutcome.success(
            step.success_message, step=step.code, content=response.content
        )

    def _step_url(self, step: PortalStep) -> str:
        if step.path is None:
            return self.config.portal.login_url
        return f"{self.config.portal.portal_base_url}{step.path}"

    def _logout(self, client: PortalSession, log: RunLoggerAdapter) -> None:
        """Best-effort logout; errors are logged and swallowed."""
        url = f"{self.config.portal.portal_base_url}{steps.LOGOUT_PATH}"
        log.info("Logging out of SII portal")
        try:
            client.get(url, timeout=self.config.transport.timeout_for(StepCode.LOGOUT.value))
            log.info("Session closed")
        except Exception as e:
            log.warning(f"Logout failed: {e}")

    def _audit(
        self,
        job: FolioJob,
        result: WorkflowResult,
        duration: float,
        log: RunLoggerAdapter,
    ) -> None:
        details = {
            "status": "success" if result.is_success else "failure",
            "session_id": result.session_id,
            "tipo_dte": job.request.tipo_dte,
            "folio_inicial": job.request.folio_inicial,
            "folio_final": job.request.folio_final,
            "duration": duration,
        }
        if result.artifact is not None:
            details["filename"] = result.artifact.filename
            log_audit_event("FOLIOS_OBTAINED", details, log=log)
        else:
            failure = result.failure
            details["code"] = failure.code if failure else None
            details["error_message"] = failure.message if failure else None
            log_audit_event("FOLIOS_FAILED", details, log=log)
