"""Folios Workflow Example.

This example demonstrates requesting a CAF file programmatically, first
against a locally running mock portal and then against the SII
certification environment, including result handling.

Start the mock portal before running Example 1:

    sii-folios mock start --port 8089
"""

import sys
from pathlib import Path

from sii_folios.config import load_config
from sii_folios.config.schema import PortalConfig
from sii_folios.models.folios import Credential, FolioJob, FolioRequest
from sii_folios.models.identity import parse_rut
from sii_folios.portal.service import obtain_folios
from sii_folios.utils.exceptions import InputError

MOCK_PORTAL_URL = "http://127.0.0.1:8089"


def build_job(cert_path: Path, password: str) -> FolioJob:
    """Build a job for folios 1-50 of type 33 (factura electrónica)."""
    return FolioJob(
        request=FolioRequest(folio_inicial=1, folio_final=50, tipo_dte="33"),
        credential=Credential(
            rut=parse_rut("12345678-5"),
            data=cert_path.read_bytes(),
            password=password,
        ),
        company=parse_rut("76.123.456-7"),
    )


def report(result) -> None:
    """Print the outcome of one run."""
    if result.is_success:
        print(f"CAF saved: {result.artifact.path} ({result.artifact.size} bytes)")
        return

    failure = result.failure
    print(f"Failed at {failure.code}: {failure.message}")
    if failure.error:
        print(f"  Error: {failure.error}")
    print(f"  HTML snapshots: storage/debug/{result.session_id}_*.html")


# Example 1: Run against the mock portal
def example_mock_portal(cert_path: Path, password: str):
    """Obtain folios from the local mock portal."""
    print("=" * 80)
    print("EXAMPLE 1: Mock Portal")
    print("=" * 80)

    config = load_config()
    config = config.model_copy(
        update={
            "portal": PortalConfig(
                base_url=MOCK_PORTAL_URL,
                login_url=f"{MOCK_PORTAL_URL}/cgi_AUT2000/CAutInicio.cgi?http://www.sii.cl",
            )
        }
    )

    report(obtain_folios(build_job(cert_path, password), config))


# Example 2: Run against the certification environment
def example_certification(cert_path: Path, password: str):
    """Obtain folios from maullin.sii.cl."""
    print("\n")
    print("=" * 80)
    print("EXAMPLE 2: SII Certification Environment")
    print("=" * 80)

    config = load_config()
    try:
        report(obtain_folios(build_job(cert_path, password), config))
    except InputError as e:
        print(f"Input error: {e}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python folios_workflow_example.py <cert.pem|cert.p12> <password>")
        sys.exit(1)

    cert = Path(sys.argv[1])
    example_mock_portal(cert, sys.argv[2])
    example_certification(cert, sys.argv[2])
