"""
Pytest configuration and shared fixtures.

This module contains fixtures that are available to all tests.
Fixtures defined here can be used across unit and integration tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from sii_folios.config.schema import Config, LoggingConfig, StorageConfig
from sii_folios.models.folios import Credential, FolioJob, FolioRequest
from sii_folios.models.identity import parse_rut

CERT_PASSWORD = "secret"
CERT_HOLDER_NAME = "Juan Perez Soto"
FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5)


def _build_certificate(
    private_key, subject_attributes, issuer_attributes=None
) -> x509.Certificate:
    subject = x509.Name(subject_attributes)
    issuer = x509.Name(issuer_attributes) if issuer_attributes else subject
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .sign(private_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def private_key():
    """
    Generate the RSA key shared by the test certificates.

    Returns:
        RSAPrivateKey: 2048-bit RSA private key.
    """
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def certificate(private_key) -> x509.Certificate:
    """
    Self-signed client certificate issued to a natural person.

    Returns:
        x509.Certificate: Certificate with CN set to the holder name.
    """
    return _build_certificate(
        private_key,
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "CL"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "E-CERTCHILE"),
            x509.NameAttribute(NameOID.COMMON_NAME, CERT_HOLDER_NAME),
        ],
    )


@pytest.fixture(scope="session")
def organization_certificate(private_key) -> x509.Certificate:
    """
    Certificate whose subject has no common name.

    Returns:
        x509.Certificate: Certificate with only O and OU in the subject.
    """
    return _build_certificate(
        private_key,
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Empresa Demo SpA"),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, "Facturacion"),
        ],
    )


@pytest.fixture(scope="session")
def issuer_named_certificate(private_key) -> x509.Certificate:
    """
    Certificate whose subject carries no name attribute at all.

    Returns:
        x509.Certificate: Subject with serial number and country only,
        issued by a CA with its own CN and O.
    """
    return _build_certificate(
        private_key,
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "CL"),
            x509.NameAttribute(NameOID.SERIAL_NUMBER, "12345678-5"),
        ],
        issuer_attributes=[
            x509.NameAttribute(NameOID.COUNTRY_NAME, "CL"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "E-CERTCHILE"),
            x509.NameAttribute(NameOID.COMMON_NAME, "E-Certchile CA FEA 02"),
        ],
    )


@pytest.fixture(scope="session")
def name_attribute_certificate(private_key) -> x509.Certificate:
    """
    Certificate whose subject has a ``name`` (2.5.4.41) and O but no CN.

    Returns:
        x509.Certificate: Certificate exercising the name-before-O order.
    """
    return _build_certificate(
        private_key,
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Empresa Demo SpA"),
            x509.NameAttribute(x509.ObjectIdentifier("2.5.4.41"), "Maria Gonzalez Rojas"),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, "Facturacion"),
        ],
    )


@pytest.fixture(scope="session")
def pem_bundle(private_key, certificate) -> bytes:
    """
    PEM bundle with the certificate and a password-protected key.

    Returns:
        bytes: Certificate PEM followed by the encrypted PKCS#8 key.
    """
    key_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.BestAvailableEncryption(
            CERT_PASSWORD.encode("utf-8")
        ),
    )
    return certificate.public_bytes(serialization.Encoding.PEM) + key_pem


@pytest.fixture(scope="session")
def unencrypted_pem_bundle(private_key, certificate) -> bytes:
    """Return a PEM bundle whose key is not encrypted."""
    key_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return certificate.public_bytes(serialization.Encoding.PEM) + key_pem


@pytest.fixture(scope="session")
def bare_key_pem(private_key) -> bytes:
    """Return an unencrypted private key without any certificate."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def der_certificate(certificate) -> bytes:
    """Return the client certificate in DER encoding."""
    return certificate.public_bytes(serialization.Encoding.DER)


@pytest.fixture(scope="session")
def pkcs12_bundle(private_key, certificate) -> bytes:
    """
    PKCS#12 container holding the client certificate and key.

    Returns:
        bytes: Container protected with CERT_PASSWORD.
    """
    return pkcs12.serialize_key_and_certificates(
        name=b"sii-test",
        key=private_key,
        cert=certificate,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(
            CERT_PASSWORD.encode("utf-8")
        ),
    )


@pytest.fixture
def app_config(tmp_path: Path) -> Config:
    """
    Configuration writing every artifact below tmp_path.

    Args:
        tmp_path: Pytest temporary directory.

    Returns:
        Config: Default configuration with storage and logs redirected.
    """
    return Config(
        storage=StorageConfig(
            folios_path=tmp_path / "folios",
            debug_path=tmp_path / "debug",
        ),
        logging=LoggingConfig(log_path=tmp_path / "logs"),
    )


@pytest.fixture
def folio_job(pem_bundle) -> FolioJob:
    """
    Job requesting folios 100-104 of type 33.

    Returns:
        FolioJob: Job with an explicit certificate holder name.
    """
    return FolioJob(
        request=FolioRequest(folio_inicial=100, folio_final=104, tipo_dte="33"),
        credential=Credential(
            rut=parse_rut("12345678-5"),
            data=pem_bundle,
            password=CERT_PASSWORD,
        ),
        company=parse_rut("76123456-7"),
        certificate_name=CERT_HOLDER_NAME,
    )


@pytest.fixture
def fixed_clock():
    """Return a clock frozen at 2025-01-02 03:04:05."""
    return lambda: FIXED_NOW


@pytest.fixture
def restore_root_logger():
    """Restore the root logger handlers replaced by configure_logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)
