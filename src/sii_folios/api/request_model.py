"""Validation of the POST /folios request body."""

import base64
import binascii
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sii_folios.config.schema import PORTAL_ENVIRONMENTS
from sii_folios.models.folios import Credential, FolioJob, FolioRequest
from sii_folios.models.identity import parse_rut
from sii_folios.utils.exceptions import InputError

REQUIRED_FIELDS = (
    "folioInicial",
    "folioFinal",
    "tipoDte",
    "rutCert",
    "rutEmpresa",
    "certificadoPem",
    "certificadoPassword",
)


class FoliosRequestBody(BaseModel):
    """JSON body of POST /folios.

    Field names follow the public camelCase API; Python attributes are
    snake_case.

    Attributes:
        folio_inicial: First folio of the range (folioInicial)
        folio_final: Last folio of the range (folioFinal)
        tipo_dte: Document type code (tipoDte)
        rut_cert: RUT of the certificate holder (rutCert)
        rut_empresa: RUT of the company (rutEmpresa)
        certificado_pem: Base64 of the PEM bundle or PKCS#12 container (certificadoPem)
        certificado_password: Password of the key or container (certificadoPassword)
        servidor: maullin or palena; configuration default when None
        return_xml: Return the raw XML instead of JSON
        enable_logging: Per-request logging toggle
        enable_html_debug: Per-request HTML snapshot toggle
        nombre_cert: Explicit certificate holder name (skips extraction)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    folio_inicial: int = Field(alias="folioInicial")
    folio_final: int = Field(alias="folioFinal")
    tipo_dte: str = Field(alias="tipoDte")
    rut_cert: str = Field(alias="rutCert")
    rut_empresa: str = Field(alias="rutEmpresa")
    certificado_pem: str = Field(alias="certificadoPem")
    certificado_password: str = Field(alias="certificadoPassword")
    servidor: Optional[str] = None
    return_xml: bool = Field(default=False, alias="returnXml")
    enable_logging: Optional[bool] = Field(default=None, alias="enableLogging")
    enable_html_debug: Optional[bool] = Field(default=None, alias="enableHtmlDebug")
    nombre_cert: Optional[str] = Field(default=None, alias="nombreCert")

    @field_validator("tipo_dte", mode="before")
    @classmethod
    def coerce_tipo_dte(cls, v: Any) -> Any:
        """Accept numeric document types (33 as well as "33")."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("servidor")
    @classmethod
    def validate_servidor(cls, v: Optional[str]) -> Optional[str]:
        """Validate environment name.

        Raises:
            ValueError: If servidor is not maullin or palena
        """
        if v is None:
            return v
        v_lower = v.strip().lower()
        if v_lower not in PORTAL_ENVIRONMENTS:
            raise ValueError(
                f"Invalid servidor: {v}. Must be one of: {', '.join(PORTAL_ENVIRONMENTS)}"
            )
        return v_lower

    def certificate_bytes(self) -> bytes:
        """Decode certificadoPem.

        Whitespace (line wrapping) is ignored; anything else outside the
        Base64 alphabet is rejected.

        Raises:
            InputError: If the value is not valid Base64
        """
        try:
            return base64.b64decode("".join(self.certificado_pem.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise InputError(
                "Invalid certificadoPem content. It must be Base64 encoded."
            ) from e

    def to_job(self) -> FolioJob:
        """Build the workflow job.

        Raises:
            InputError: If a RUT, the folio range or the certificate encoding
                is invalid
        """
        return FolioJob(
            request=FolioRequest(
                folio_inicial=self.folio_inicial,
                folio_final=self.folio_final,
                tipo_dte=self.tipo_dte,
            ),
            credential=Credential(
                rut=parse_rut(self.rut_cert),
                data=self.certificate_bytes(),
                password=self.certificado_password,
            ),
            company=parse_rut(self.rut_empresa),
            certificate_name=self.nombre_cert,
        )


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == 0 or value is False


def parse_folios_request(data: Any) -> FoliosRequestBody:
    """Validate a decoded JSON body.

    Args:
        data: Decoded JSON value

    Returns:
        FoliosRequestBody

    Raises:
        InputError: If the body is not an object, a required parameter is
            missing or empty, or a value has the wrong type
    """
    if not isinstance(data, dict):
        raise InputError("Invalid request body. A JSON object is expected.")

    for name in REQUIRED_FIELDS:
        if _is_empty(data.get(name)):
            raise InputError(f"Required parameter '{name}' missing or empty.")

    try:
        return FoliosRequestBody.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InputError(f"Invalid parameter '{location}': {first['msg']}") from e
