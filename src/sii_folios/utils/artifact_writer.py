"""Persistence of downloaded CAF files."""

from datetime import datetime
from pathlib import Path
from typing import Callable, Union

from sii_folios.logging_audit.logger import get_logger
from sii_folios.models.artifact import Artifact

logger = get_logger(__name__)


def build_caf_filename(
    rut_text: str,
    tipo_dte: str,
    folio_inicial: int,
    folio_final: int,
    timestamp: datetime,
) -> str:
    """Build the deterministic CAF file name.

    Dots are removed from the RUT and the dash becomes an underscore.

    Args:
        rut_text: Company RUT as supplied by the caller
        tipo_dte: Document type code
        folio_inicial: First folio
        folio_final: Last folio
        timestamp: Time stamped into the name (second precision)

    Returns:
        File name such as ``CAF_76123456_7_TIPO33_DESDE100_HASTA104_20250102_030405.xml``
    """
    rut_part = rut_text.replace(".", "").replace("-", "_")
    return (
        f"CAF_{rut_part}_TIPO{tipo_dte}_DESDE{folio_inicial}_HASTA{folio_final}_"
        f"{timestamp.strftime('%Y%m%d_%H%M%S')}.xml"
    )


class ArtifactWriter:
    """Writes CAF payloads into the folios directory.

    Attributes:
        folios_path: Target directory (created on first write)

    Example:
        >>> writer = ArtifactWriter(Path("storage/folios"))
        >>> artifact = writer.write(b"<AUTORIZACION/>", "76123456-7", "33", 100, 104)
        >>> artifact.path.name.startswith("CAF_76123456_7_TIPO33")
        True
    """

    def __init__(
        self,
        folios_path: Union[str, Path],
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.folios_path = Path(folios_path)
        self._clock = clock

    def write(
        self,
        content: bytes,
        rut_text: str,
        tipo_dte: str,
        folio_inicial: int,
        folio_final: int,
    ) -> Artifact:
        """Write the payload once and return the artifact.

        Args:
            content: CAF bytes exactly as received
            rut_text: Company RUT as supplied by the caller
            tipo_dte: Document type code
            folio_inicial: First folio
            folio_final: Last folio

        Returns:
            Artifact with the absolute file path

        Raises:
            OSError: If the directory or file cannot be written
        """
        created_at = self._clock()
        filename = build_caf_filename(rut_text, tipo_dte, folio_inicial, folio_final, created_at)

        if not self.folios_path.exists():
            self.folios_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created folios directory: {self.folios_path}")

        path = (self.folios_path / filename).resolve()
        with open(path, "wb") as f:
            f.write(content)

        logger.info(f"CAF file saved: {path} ({len(content)} bytes)")
        return Artifact(filename=filename, path=path, content=content, created_at=created_at)
