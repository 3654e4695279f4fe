"""Entry point shared by the HTTP API and the CLI.

``obtain_folios`` stages the client certificate, resolves the certificate
holder name and runs one folios workflow.
"""

import dataclasses
from datetime import datetime
from typing import Callable

from sii_folios.config.schema import Config
from sii_folios.credentials.certificate import extract_certificate_name
from sii_folios.credentials.staging import stage_credential
from sii_folios.logging_audit.logger import get_logger, run_logging
from sii_folios.models.folios import FolioJob
from sii_folios.models.outcomes import WorkflowResult
from sii_folios.portal.workflow import FoliosWorkflow
from sii_folios.transport.session_client import SessionClient

logger = get_logger(__name__)


def obtain_folios(
    job: FolioJob,
    config: Config,
    clock: Callable[[], datetime] = datetime.now,
) -> WorkflowResult:
    """Obtain a CAF file for the job's folio range.

    Args:
        job: Folio request, credential and company RUT. When
            ``certificate_name`` is None it is extracted from the certificate.
        config: Configuration with per-request overrides already applied
        clock: Source of local time (form date fields, file names)

    Returns:
        WorkflowResult

    Raises:
        CertificateLoadError: If the credential cannot be staged for mutual TLS

    Example:
        >>> result = obtain_folios(job, load_config())
        >>> result.artifact.filename if result.is_success else result.failure.message
        'CAF_76123456_7_TIPO33_DESDE100_HASTA104_20250102_030405.xml'
    """
    with run_logging(config.logging.enabled):
        return _obtain_folios(job, config, clock)


def _obtain_folios(
    job: FolioJob,
    config: Config,
    clock: Callable[[], datetime],
) -> WorkflowResult:
    credential = job.credential

    if job.certificate_name is None:
        name = extract_certificate_name(credential.data, credential.password)
        if name is None:
            logger.warning("Certificate name could not be extracted; sending empty NOMUSU")
        job = dataclasses.replace(job, certificate_name=name or "")

    with stage_credential(credential.data, credential.password) as staged:
        workflow = FoliosWorkflow(
            config,
            session_factory=lambda: SessionClient(config.transport, cert=staged.requests_cert),
            clock=clock,
        )
        return workflow.run(job)
