"""Temporary PEM materialisation of client credentials for mutual TLS.

``requests`` only accepts client certificates as files on disk
(``cert=(cert_path, key_path)``) and cannot decrypt a password-protected key.
``stage_credential`` decodes the caller's PEM bundle or PKCS#12 container,
writes the certificate chain and an unencrypted copy of the key into a
private temporary directory and removes that directory when the run ends.
"""

import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from sii_folios.credentials.certificate import (
    load_pem_certificates,
    load_pem_private_key,
    load_pkcs12_bundle,
)
from sii_folios.logging_audit.logger import get_logger
from sii_folios.utils.exceptions import CertificateLoadError

logger = get_logger(__name__)

TEMP_DIR_PREFIX = "sii_temp_"
CERT_FILE_NAME = "client_cert.pem"
KEY_FILE_NAME = "client_key.pem"


@dataclass(frozen=True)
class StagedCredential:
    """Paths of the materialised credential files.

    Attributes:
        cert_path: PEM file holding the client certificate and its chain
        key_path: PEM file holding the unencrypted private key
        directory: Temporary directory containing both files
    """

    cert_path: Path
    key_path: Path
    directory: Path

    @property
    def requests_cert(self) -> tuple[str, str]:
        """Value for the ``cert`` argument of requests."""
        return (str(self.cert_path), str(self.key_path))


def _decode_credential(
    data: bytes, password: Optional[str]
) -> tuple[List[x509.Certificate], PrivateKeyTypes]:
    """Return (certificate_chain, private_key) from PEM or PKCS#12 data.

    Raises:
        CertificateLoadError: If a certificate or key is missing or unreadable
    """
    if b"-----BEGIN" in data:
        certificates = load_pem_certificates(data)
        if not certificates:
            raise CertificateLoadError(
                "No certificate found in PEM data. "
                "The bundle must contain the certificate and its private key."
            )
        key = load_pem_private_key(data, password)
        return certificates, key

    key, certificate, chain = load_pkcs12_bundle(data, password)
    if certificate is None:
        raise CertificateLoadError("No certificate found in PKCS12 container")
    if key is None:
        raise CertificateLoadError("No private key found in PKCS12 container")
    return [certificate, *chain], key


@contextmanager
def stage_credential(data: bytes, password: Optional[str] = None) -> Iterator[StagedCredential]:
    """Write the credential to temporary PEM files for the duration of a run.

    The directory is created with mode 0700 and the key file with mode 0600;
    both are deleted on every exit path.

    Args:
        data: PEM bundle (certificate + key) or PKCS#12 container bytes
        password: Password of the key or container

    Yields:
        StagedCredential with the file paths

    Raises:
        CertificateLoadError: If the material cannot be decoded

    Example:
        >>> with stage_credential(pem_bytes, "secret") as staged:
        ...     session.cert = staged.requests_cert
    """
    certificates, key = _decode_credential(data, password)

    cert_pem = b"".join(
        certificate.public_bytes(serialization.Encoding.PEM) for certificate in certificates
    )
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )

    directory = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
    try:
        cert_path = directory / CERT_FILE_NAME
        key_path = directory / KEY_FILE_NAME

        cert_path.write_bytes(cert_pem)
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(key_pem)

        logger.debug(f"Credential staged in {directory}")
        yield StagedCredential(cert_path=cert_path, key_path=key_path, directory=directory)
    finally:
        shutil.rmtree(directory, ignore_errors=True)
        logger.debug(f"Staged credential removed: {directory}")
