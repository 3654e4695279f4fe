"""Folios CLI commands module.

This module provides the Click command that runs the SII folios workflow
from a local certificate file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from sii_folios.config.manager import apply_request_overrides
from sii_folios.config.schema import PORTAL_ENVIRONMENTS, Config
from sii_folios.models.folios import Credential, FolioJob, FolioRequest
from sii_folios.models.identity import parse_rut
from sii_folios.models.outcomes import WorkflowResult
from sii_folios.portal.service import obtain_folios
from sii_folios.utils.exceptions import ConfigurationError, InputError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_INPUT_ERROR = 1
EXIT_STEP_FAILURE = 2
EXIT_FAULT = 3


@click.command(name="request")
@click.option("--folio-inicial", type=int, required=True, help="First folio of the range")
@click.option("--folio-final", type=int, required=True, help="Last folio of the range")
@click.option("--tipo-dte", type=str, required=True, help="Document type code (e.g. 33)")
@click.option("--rut-cert", type=str, required=True, help="RUT of the certificate holder")
@click.option("--rut-empresa", type=str, required=True, help="RUT of the company")
@click.option(
    "--cert",
    "cert_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="PEM bundle (certificate + key) or PKCS#12 file",
)
@click.option(
    "--password",
    envvar="SII_CERT_PASSWORD",
    prompt="Certificate password",
    hide_input=True,
    default="",
    show_default=False,
    help="Certificate password (or SII_CERT_PASSWORD)",
)
@click.option(
    "--servidor",
    type=click.Choice(PORTAL_ENVIRONMENTS, case_sensitive=False),
    default=None,
    help="SII environment (overrides config)",
)
@click.option(
    "--nombre-cert",
    type=str,
    default=None,
    help="Certificate holder name (skips extraction from the certificate)",
)
@click.option("--no-html-debug", is_flag=True, help="Do not write HTML debug snapshots")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also copy the CAF XML to this file",
)
@click.pass_context
def request_folios(
    ctx: click.Context,
    folio_inicial: int,
    folio_final: int,
    tipo_dte: str,
    rut_cert: str,
    rut_empresa: str,
    cert_path: Path,
    password: str,
    servidor: Optional[str],
    nombre_cert: Optional[str],
    no_html_debug: bool,
    output: Optional[Path],
) -> None:
    """Request folios and download the CAF file.

    Runs the complete portal workflow (login, request, confirm, generate,
    download, logout) and stores the CAF under the configured folios path.

    Exit Codes:
        0: Success
        1: Input error (RUT, folio range, certificate, configuration)
        2: Portal step failure
        3: Unhandled fault

    Examples:
        # Request folios 100-104 for invoices (type 33) in certification
        $ sii-folios request --folio-inicial 100 --folio-final 104 --tipo-dte 33 \\
            --rut-cert 12345678-5 --rut-empresa 76123456-7 --cert cert.pem

        # Production environment, password from environment
        $ SII_CERT_PASSWORD=secret sii-folios request ... --servidor palena
    """
    config_obj: Config = ctx.obj["config"]

    try:
        job = FolioJob(
            request=FolioRequest(
                folio_inicial=folio_inicial,
                folio_final=folio_final,
                tipo_dte=tipo_dte,
            ),
            credential=Credential(
                rut=parse_rut(rut_cert),
                data=cert_path.read_bytes(),
                password=password,
            ),
            company=parse_rut(rut_empresa),
            certificate_name=nombre_cert,
        )
        run_config = apply_request_overrides(
            config_obj,
            servidor=servidor,
            enable_html_debug=False if no_html_debug else None,
        )

        click.echo(f"Environment:  {run_config.portal.servidor}")
        click.echo(f"Company:      {job.company}")
        click.echo(
            f"Folios:       {folio_inicial}-{folio_final} "
            f"(type {tipo_dte}, {job.request.document_count} documents)"
        )
        click.echo()

        result = obtain_folios(job, run_config)

    except (InputError, ConfigurationError) as e:
        logger.error(f"Input error: {e}")
        click.echo(click.style("✗ Input Error: ", fg="red", bold=True) + str(e), err=True)
        sys.exit(EXIT_INPUT_ERROR)

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(click.style("✗ Unexpected Error: ", fg="red", bold=True) + str(e), err=True)
        sys.exit(EXIT_FAULT)

    sys.exit(_report_result(result, output))


def _report_result(result: WorkflowResult, output: Optional[Path]) -> int:
    """Print the run result and return the exit code."""
    if result.is_success:
        artifact = result.artifact
        click.echo(click.style("✓ Folios obtained", fg="green", bold=True))
        click.echo(f"  File:    {artifact.path}")
        click.echo(f"  Size:    {artifact.size} bytes")
        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(artifact.content)
            click.echo(f"  Copy:    {output}")
        return EXIT_SUCCESS

    failure = result.failure
    click.echo(
        click.style(f"✗ Failed at {failure.code}: ", fg="red", bold=True) + failure.message,
        err=True,
    )
    if failure.error:
        click.echo(f"  Error:   {failure.error}", err=True)
    click.echo(f"  Debug session: {result.session_id}", err=True)
    return EXIT_FAULT if result.is_fault else EXIT_STEP_FAILURE
