"""Form field builders for the SII folios pages.

Each builder returns the exact field map one portal step submits. POST steps
send the same map twice, as query string and as form body. All values are
strings so the map can be logged, dumped and compared as sent.
"""

from datetime import datetime
from typing import Optional

from sii_folios.models.folios import FolioRequest, document_count
from sii_folios.models.identity import Rut

LOGIN_REFERENCE = "https://www.sii.cl"

REQUEST_SUBMIT = "Continuar"
CONFIRM_SUBMIT = "Solicitar Numeración"
GENERATE_SUBMIT = "Obtener Folios"
FILE_SUBMIT = "AQUI"

# Fixed portal options: IVA-affected documents without credit or adjustment
AFECTO_IVA = "S"
CON_CREDITO = "0"
CON_AJUSTE = "0"


def login_query(cert_rut: Rut) -> dict[str, str]:
    """Query parameters of the certificate login request."""
    return {
        "rutcntr": cert_rut.formatted,
        "rut": cert_rut.number,
        "referencia": LOGIN_REFERENCE,
        "dv": cert_rut.check_digit,
    }


def request_folios_fields(company: Rut) -> dict[str, str]:
    """Fields of the folio request page (of_solicita_folios)."""
    return {
        "RUT_EMP": company.number,
        "DV_EMP": company.check_digit,
        "ACEPTAR": REQUEST_SUBMIT,
    }


def confirm_folios_fields(company: Rut, request: FolioRequest) -> dict[str, str]:
    """Fields of the folio confirmation page (of_confirma_folio).

    Example:
        >>> confirm_folios_fields(parse_rut("76123456-7"), FolioRequest(100, 104, "33"))["CANT_DOCTOS"]
        '5'
    """
    return {
        "RUT_EMP": company.number,
        "DV_EMP": company.check_digit,
        "FOLIO_INICIAL": str(request.folio_inicial),
        "COD_DOCTO": str(request.tipo_dte),
        "AFECTO_IVA": AFECTO_IVA,
        "CON_CREDITO": CON_CREDITO,
        "CON_AJUSTE": CON_AJUSTE,
        "CANT_DOCTOS": str(document_count(request.folio_inicial, request.folio_final)),
        "ACEPTAR": CONFIRM_SUBMIT,
    }


def generate_folios_fields(
    company: Rut,
    request: FolioRequest,
    certificate_name: Optional[str],
    now: datetime,
) -> dict[str, str]:
    """Fields of the folio generation page (of_genera_folio).

    Args:
        company: Company RUT
        request: Folio range
        certificate_name: Certificate holder name; None is sent as ""
        now: Local time stamped into DIA/MES/ANO/HORA/MINUTO

    Returns:
        Field map with NOMUSU uppercased and date parts zero-padded
    """
    return {
        "NOMUSU": (certificate_name or "").upper(),
        "CON_CREDITO": CON_CREDITO,
        "CON_AJUSTE": CON_AJUSTE,
        "FOLIO_INI": str(request.folio_inicial),
        "FOLIO_FIN": str(request.folio_final),
        "DIA": now.strftime("%d"),
        "MES": now.strftime("%m"),
        "ANO": now.strftime("%Y"),
        "HORA": now.strftime("%H"),
        "MINUTO": now.strftime("%M"),
        "RUT_EMP": company.number,
        "DV_EMP": company.check_digit,
        "COD_DOCTO": str(request.tipo_dte),
        "CANT_DOCTOS": str(document_count(request.folio_inicial, request.folio_final)),
        "ACEPTAR": GENERATE_SUBMIT,
    }


def generate_file_fields(company: Rut, request: FolioRequest, now: datetime) -> dict[str, str]:
    """Fields of the CAF download page (of_genera_archivo)."""
    return {
        "RUT_EMP": company.number,
        "DV_EMP": company.check_digit,
        "COD_DOCTO": str(request.tipo_dte),
        "FOLIO_INI": str(request.folio_inicial),
        "FOLIO_FIN": str(request.folio_final),
        "FECHA": now.strftime("%Y-%m-%d"),
        "ACEPTAR": FILE_SUBMIT,
    }
