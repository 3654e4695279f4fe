"""Folio range request data models."""

import re
from dataclasses import dataclass, field
from typing import Optional

from sii_folios.models.identity import Rut
from sii_folios.utils.exceptions import InputError

_TIPO_DTE_PATTERN = re.compile(r"^\d{1,3}$")


def document_count(folio_inicial: int, folio_final: int) -> int:
    """Number of documents in an inclusive folio range.

    Called independently by every form builder that sends ``CANT_DOCTOS``
    so both submissions always carry the same value.

    Example:
        >>> document_count(100, 104)
        5
    """
    return folio_final - folio_inicial + 1


@dataclass(frozen=True)
class FolioRequest:
    """Inclusive folio range for one document type.

    Attributes:
        folio_inicial: First folio of the range
        folio_final: Last folio of the range (>= folio_inicial)
        tipo_dte: Document type code (e.g. "33" for factura electrónica)
    """

    folio_inicial: int
    folio_final: int
    tipo_dte: str

    def __post_init__(self) -> None:
        """Validate range and document type."""
        for name in ("folio_inicial", "folio_final"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InputError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise InputError(f"{name} must be >= 1, got {value}")
        if self.folio_final < self.folio_inicial:
            raise InputError(
                f"folio_final ({self.folio_final}) must be >= "
                f"folio_inicial ({self.folio_inicial})"
            )
        if not _TIPO_DTE_PATTERN.match(str(self.tipo_dte)):
            raise InputError(
                f"Invalid tipo_dte: {self.tipo_dte!r}. Must be a numeric document type code."
            )

    @property
    def document_count(self) -> int:
        """Number of documents requested."""
        return document_count(self.folio_inicial, self.folio_final)


@dataclass(frozen=True)
class Credential:
    """Client certificate material for one workflow run.

    Attributes:
        rut: RUT of the certificate holder (used to log in)
        data: PEM bundle (certificate + key) or PKCS#12 container bytes
        password: Password protecting the private key
    """

    rut: Rut
    data: bytes = field(repr=False)
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class FolioJob:
    """Everything needed to run the folios workflow once.

    Attributes:
        request: Folio range to obtain
        credential: Certificate material and holder RUT
        company: RUT of the company the folios are issued to
        certificate_name: Explicit NOMUSU value; extracted from the
            certificate when None
    """

    request: FolioRequest
    credential: Credential
    company: Rut
    certificate_name: Optional[str] = None
