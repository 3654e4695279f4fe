"""Credentials module.

Certificate name extraction and temporary mutual-TLS material.
"""

from sii_folios.credentials.certificate import extract_certificate_name, name_from_certificate
from sii_folios.credentials.staging import StagedCredential, stage_credential

__all__ = [
    "extract_certificate_name",
    "name_from_certificate",
    "stage_credential",
    "StagedCredential",
]
