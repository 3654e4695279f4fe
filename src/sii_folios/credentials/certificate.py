"""Certificate loading and display-name extraction.

The portal's GENERATE step expects the certificate holder's name (NOMUSU).
This module recovers it from the credential material the caller supplied,
which may be a PEM bundle (certificate plus key), a bare DER certificate,
a PKCS#12 container or a bare private key.
"""

import re
from typing import List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from sii_folios.logging_audit.logger import get_logger
from sii_folios.utils.exceptions import CertificateLoadError

logger = get_logger(__name__)

PEM_BLOCK_PATTERN = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----.*?-----END \1-----", re.DOTALL
)

# Subject attributes searched in order, then issuer attributes
SUBJECT_NAME_ORDER = (
    NameOID.COMMON_NAME,
    x509.ObjectIdentifier("2.5.4.41"),  # name
    NameOID.ORGANIZATION_NAME,
    NameOID.ORGANIZATIONAL_UNIT_NAME,
)
ISSUER_NAME_ORDER = (
    NameOID.COMMON_NAME,
    NameOID.ORGANIZATION_NAME,
)


def _password_bytes(password: Optional[str]) -> Optional[bytes]:
    if not password:
        return None
    return password.encode("utf-8")


def split_pem_blocks(data: bytes) -> List[Tuple[str, bytes]]:
    """Split PEM data into (label, block) pairs.

    Args:
        data: Raw PEM bytes, possibly holding several blocks

    Returns:
        List of (label, block_bytes) tuples in file order, e.g.
        ``[("CERTIFICATE", b"-----BEGIN CERTIFICATE-----..."), ...]``
    """
    return [
        (match.group(1).decode("ascii"), match.group(0))
        for match in PEM_BLOCK_PATTERN.finditer(data)
    ]


def load_pem_certificates(data: bytes) -> List[x509.Certificate]:
    """Load every X.509 certificate found in PEM data.

    Args:
        data: Raw PEM bytes

    Returns:
        Certificates in file order (empty if none)

    Raises:
        CertificateLoadError: If a CERTIFICATE block is malformed
    """
    certificates = []
    for label, block in split_pem_blocks(data):
        if label != "CERTIFICATE":
            continue
        try:
            certificates.append(x509.load_pem_x509_certificate(block))
        except ValueError as e:
            raise CertificateLoadError(
                f"Failed to load PEM certificate: {e}. Ensure data is valid PEM format."
            ) from e
    return certificates


def load_pem_private_key(data: bytes, password: Optional[str]) -> PrivateKeyTypes:
    """Load the first private key found in PEM data.

    An unencrypted key is accepted even when a password is given.

    Args:
        data: Raw PEM bytes
        password: Key password (may be empty)

    Returns:
        Private key

    Raises:
        CertificateLoadError: If no key is present, the password is wrong or
            the key is malformed
    """
    key_blocks = [block for label, block in split_pem_blocks(data) if "PRIVATE KEY" in label]
    if not key_blocks:
        raise CertificateLoadError(
            "No private key found in PEM data. "
            "The bundle must contain the certificate and its private key."
        )

    try:
        return serialization.load_pem_private_key(
            key_blocks[0], password=_password_bytes(password)
        )
    except TypeError:
        # Password supplied for an unencrypted key, or missing for an encrypted one
        try:
            return serialization.load_pem_private_key(key_blocks[0], password=None)
        except TypeError as e:
            raise CertificateLoadError(
                "Private key is encrypted: provide the certificate password."
            ) from e
        except ValueError as e:
            raise CertificateLoadError(f"Failed to load PEM private key: {e}") from e
    except ValueError as e:
        raise CertificateLoadError(
            f"Failed to load PEM private key: {e}. "
            f"Check the certificate password."
        ) from e


def load_pkcs12_bundle(
    data: bytes, password: Optional[str]
) -> Tuple[Optional[PrivateKeyTypes], Optional[x509.Certificate], List[x509.Certificate]]:
    """Load a PKCS#12 container.

    Args:
        data: Raw PKCS#12 bytes
        password: Container password

    Returns:
        Tuple of (private_key, certificate, additional_certificates)

    Raises:
        CertificateLoadError: If the container cannot be decoded
    """
    try:
        key, certificate, chain = pkcs12.load_key_and_certificates(
            data, _password_bytes(password)
        )
    except (ValueError, TypeError) as e:
        raise CertificateLoadError(
            f"Failed to load PKCS12 container: {e}. "
            f"Ensure data is valid PKCS12 format and password is correct."
        ) from e
    return key, certificate, list(chain or [])


def _first_attribute(name: x509.Name, oids: Tuple[x509.ObjectIdentifier, ...]) -> Optional[str]:
    for oid in oids:
        for attribute in name.get_attributes_for_oid(oid):
            value = attribute.value
            if isinstance(value, bytes):
                value = value.decode("utf-8", errors="replace")
            if value and value.strip():
                return value.strip()
    return None


def name_from_certificate(certificate: x509.Certificate) -> Optional[str]:
    """Pick the display name of a certificate.

    Searches subject CN, subject name (2.5.4.41), subject O, subject OU,
    then issuer CN and issuer O. The first non-empty value wins.

    Args:
        certificate: X.509 certificate

    Returns:
        Display name, or None when no attribute is present
    """
    return _first_attribute(certificate.subject, SUBJECT_NAME_ORDER) or _first_attribute(
        certificate.issuer, ISSUER_NAME_ORDER
    )


def _load_leaf_certificate(data: bytes, password: Optional[str]) -> Optional[x509.Certificate]:
    """Find the client certificate in PEM, DER or PKCS#12 data.

    Returns None when the data only holds a private key.
    """
    certificates = load_pem_certificates(data)
    if certificates:
        return certificates[0]

    if b"-----BEGIN" in data:
        # PEM without a certificate block: a bare private key
        load_pem_private_key(data, password)
        return None

    try:
        return x509.load_der_x509_certificate(data)
    except ValueError:
        logger.debug("Credential is not a DER certificate, trying PKCS12")

    _, certificate, _ = load_pkcs12_bundle(data, password)
    return certificate


def extract_certificate_name(data: bytes, password: Optional[str] = None) -> Optional[str]:
    """Extract the certificate holder's display name.

    Never raises: any parse error is logged and None is returned, in which
    case the caller sends an empty name.

    Args:
        data: Credential bytes (PEM bundle, DER certificate or PKCS#12)
        password: Password protecting the key or container

    Returns:
        Display name, or None if it cannot be determined

    Example:
        >>> extract_certificate_name(pem_bytes, "secret")
        'JUAN PEREZ SOTO'
    """
    try:
        certificate = _load_leaf_certificate(data, password)
    except CertificateLoadError as e:
        logger.error(f"Could not load certificate to extract name: {e}")
        return None
    except Exception as e:
        logger.error(f"Unexpected error extracting certificate name: {e}")
        return None

    if certificate is None:
        logger.warning("Credential holds a private key only; no certificate name available")
        return None

    name = name_from_certificate(certificate)
    if name is None:
        logger.warning("Certificate has no usable name attribute")
    else:
        logger.debug("Certificate name extracted")
    return name
