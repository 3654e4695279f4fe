"""CAF artifact data model."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class Artifact:
    """CAF XML file downloaded at the end of a successful run.

    Attributes:
        filename: Generated file name (CAF_<rut>_TIPO<t>_DESDE<a>_HASTA<b>_<ts>.xml)
        path: Absolute path the payload was written to
        content: Raw XML bytes exactly as returned by the portal
        created_at: Timestamp encoded in the file name
    """

    filename: str
    path: Path
    content: bytes = field(repr=False)
    created_at: datetime

    @property
    def size(self) -> int:
        return len(self.content)
