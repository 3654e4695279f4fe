"""HTML debug snapshots of portal responses.

Every HTML page returned by the portal during a run can be written to the
debug directory so a failed run can be inspected after the fact. Files are
named ``<sessionId>_<stepNumber>_<stepName>.html`` and start with an HTML
comment describing the request that produced them.
"""

import json
import secrets
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .logger import get_logger

logger = get_logger(__name__)


def new_session_id(now: Optional[datetime] = None) -> str:
    """Generate a debug session id.

    Format is ``YYYYmmdd_HHMMSS_<6 hex chars>``; the random suffix keeps
    concurrent runs started in the same second apart.

    Args:
        now: Timestamp to use (defaults to the current local time)

    Returns:
        Session id string

    Example:
        >>> new_session_id(datetime(2025, 1, 2, 3, 4, 5))[:15]
        '20250102_030405'
    """
    now = now or datetime.now()
    return f"{now.strftime('%Y%m%d_%H%M%S')}_{secrets.token_hex(3)}"


class HtmlDebugSink:
    """Writes portal responses to the debug directory.

    A disabled sink accepts every call and writes nothing, so callers never
    branch on the toggle themselves.

    Attributes:
        debug_path: Directory receiving the snapshots
        session_id: Prefix shared by all snapshots of one run
        enabled: Whether snapshots are written

    Example:
        >>> sink = HtmlDebugSink(Path("storage/debug"), "20250101_120000_a1b2c3")
        >>> sink.save("1_login", "<html>...</html>", {"url": "https://..."})
    """

    def __init__(
        self,
        debug_path: Union[str, Path],
        session_id: str,
        enabled: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.debug_path = Path(debug_path)
        self.session_id = session_id
        self.enabled = enabled
        self._clock = clock

    def save(
        self,
        step_name: str,
        html: str,
        request_info: Optional[dict[str, Any]] = None,
    ) -> Optional[Path]:
        """Write one snapshot.

        Args:
            step_name: Numbered step name, e.g. ``"2_solicitar_folios"``
            html: Response body
            request_info: Request details written in the header comment

        Returns:
            Path of the written file, or None when the sink is disabled or
            the file could not be written
        """
        if not self.enabled:
            return None

        filename = self.debug_path / f"{self.session_id}_{step_name}.html"
        header = self._build_header(step_name, request_info or {})

        try:
            self.debug_path.mkdir(parents=True, exist_ok=True)
            filename.write_text(header + html, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write HTML debug file {filename}: {e}")
            return None

        logger.debug(f"HTML debug saved: step={step_name} file={filename}")
        return filename

    def _build_header(self, step_name: str, request_info: dict[str, Any]) -> str:
        lines = [
            "<!--",
            f"Date: {self._clock().strftime('%Y-%m-%d %H:%M:%S')}",
            f"Step: {step_name}",
        ]
        if request_info:
            lines.append("Request info:")
            for key, value in request_info.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, indent=4)
                lines.append(f"{key}: {value}")
        lines.append("-->")
        return "\n".join(lines) + "\n"
