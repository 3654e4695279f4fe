"""Static description of the SII folios portal steps."""

from dataclasses import dataclass
from typing import Optional

from sii_folios.models.outcomes import StepCode

FOLIOS_CGI_PATH = "/cvc_cgi/dte"
LOGOUT_PATH = "/cgi_AUT2000/CAutLogout.cgi?http://www.sii.cl/"

# Accept header sent when downloading the CAF file
FILE_ACCEPT_HEADER = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8,"
    "application/signed-exchange;v=b3;q=0.9"
)


@dataclass(frozen=True)
class PortalStep:
    """One step of the portal conversation.

    Attributes:
        code: Step code, reported as failure code
        method: HTTP method (GET or POST)
        path: Path below the portal base URL (None for the login URL)
        debug_name: Numbered name of the HTML snapshot, None if not dumped
        failure_message: Message used when the page gives none
        success_message: Message logged on success
    """

    code: StepCode
    method: str
    path: Optional[str]
    debug_name: Optional[str]
    failure_message: str
    success_message: str


LOGIN = PortalStep(
    code=StepCode.LOGIN,
    method="GET",
    path=None,
    debug_name="1_login",
    failure_message="failed to log in",
    success_message="login successful",
)

REQUEST_FOLIOS = PortalStep(
    code=StepCode.REQUEST_FOLIOS,
    method="POST",
    path=f"{FOLIOS_CGI_PATH}/of_solicita_folios",
    debug_name="2_solicitar_folios",
    failure_message="failed to request folios",
    success_message="folio request successful",
)

CONFIRM_FOLIOS = PortalStep(
    code=StepCode.CONFIRM_FOLIOS,
    method="POST",
    path=f"{FOLIOS_CGI_PATH}/of_confirma_folio",
    debug_name="3_confirmar_folios",
    failure_message="failed to confirm folios",
    success_message="folio confirmation successful",
)

GENERATE_FOLIOS = PortalStep(
    code=StepCode.GENERATE_FOLIOS,
    method="POST",
    path=f"{FOLIOS_CGI_PATH}/of_genera_folio",
    debug_name="4_generar_folios",
    failure_message="failed to generate folios",
    success_message="folio generation successful",
)

GENERATE_FILE = PortalStep(
    code=StepCode.GENERATE_FILE,
    method="POST",
    path=f"{FOLIOS_CGI_PATH}/of_genera_archivo",
    debug_name=None,
    failure_message="failed to generate folio file",
    success_message="folio file generation successful",
)

WORKFLOW_STEPS = (LOGIN, REQUEST_FOLIOS, CONFIRM_FOLIOS, GENERATE_FOLIOS, GENERATE_FILE)
