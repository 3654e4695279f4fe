"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from sii_folios.config.defaults import LOG_FILE_NAME

# Named SII environments accepted as ``servidor``
PORTAL_ENVIRONMENTS = ("maullin", "palena")

# Step codes accepted as step_timeouts keys
STEP_TIMEOUT_KEYS = (
    "login",
    "of_solicita_folios",
    "of_confirma_folio",
    "of_genera_folio",
    "of_genera_archivo",
    "logout",
)


class PortalConfig(BaseModel):
    """Configuration for the SII portal.

    Attributes:
        servidor: SII environment (maullin = certification, palena = production)
        base_url: Explicit base URL for the folio endpoints. When None the
            URL is derived from servidor (https://<servidor>.sii.cl).
        login_url: Certificate authentication endpoint
    """

    servidor: str = Field(default="maullin", description="SII environment name")
    base_url: Optional[str] = Field(
        default=None, description="Override for https://<servidor>.sii.cl"
    )
    login_url: str = Field(
        default="https://herculesr.sii.cl/cgi_AUT2000/CAutInicio.cgi?http://www.sii.cl",
        description="Certificate login endpoint",
    )

    @field_validator("servidor")
    @classmethod
    def validate_servidor(cls, v: str) -> str:
        """Validate environment name.

        Raises:
            ValueError: If servidor is not maullin or palena
        """
        v_lower = v.strip().lower()
        if v_lower not in PORTAL_ENVIRONMENTS:
            raise ValueError(
                f"Invalid servidor: {v}. Must be one of: {', '.join(PORTAL_ENVIRONMENTS)}"
            )
        return v_lower

    @field_validator("base_url", "login_url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate URL is valid HTTP/HTTPS.

        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v

    @property
    def portal_base_url(self) -> str:
        """Base URL of the folio endpoints, without trailing slash."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"https://{self.servidor}.sii.cl"


class StorageConfig(BaseModel):
    """Configuration for output directories.

    Attributes:
        folios_path: Directory receiving CAF XML files
        debug_path: Directory receiving HTML debug snapshots
    """

    folios_path: Path = Field(default=Path("storage/folios"))
    debug_path: Path = Field(default=Path("storage/debug"))


class TransportConfig(BaseModel):
    """Configuration for HTTPS transport.

    Attributes:
        verify_tls: Whether to verify the portal's TLS certificate
        timeout_connect: Connection timeout in seconds
        timeout_read: Default read timeout in seconds
        step_timeouts: Read timeout overrides keyed by step code
    """

    verify_tls: bool = True
    timeout_connect: float = Field(
        default=10, gt=0, description="Connection timeout in seconds"
    )
    timeout_read: float = Field(
        default=60, gt=0, description="Read timeout in seconds"
    )
    step_timeouts: dict[str, float] = Field(default_factory=dict)

    @field_validator("step_timeouts")
    @classmethod
    def validate_step_timeouts(cls, v: dict[str, float]) -> dict[str, float]:
        """Validate step names and values.

        Raises:
            ValueError: If a key is not a step code or a value is not positive
        """
        for step, seconds in v.items():
            if step not in STEP_TIMEOUT_KEYS:
                raise ValueError(
                    f"Invalid step in step_timeouts: {step}. "
                    f"Must be one of: {', '.join(STEP_TIMEOUT_KEYS)}"
                )
            if seconds <= 0:
                raise ValueError(
                    f"Timeout for {step} must be > 0, got {seconds}"
                )
        return v

    def timeout_for(self, step: str) -> tuple[float, float]:
        """Return the (connect, read) timeout tuple for a step."""
        return (self.timeout_connect, self.step_timeouts.get(step, self.timeout_read))


class LoggingConfig(BaseModel):
    """Configuration for logging and HTML debug snapshots.

    Attributes:
        enabled: Whether workflow events are logged
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_path: Directory holding the flat log file
        html_debug: Whether portal responses are dumped for review
        redact_pii: Whether to redact RUTs and names from logs
    """

    enabled: bool = True
    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_path: Path = Field(default=Path("storage/logs"))
    html_debug: bool = True
    redact_pii: bool = False

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper

    @property
    def log_file(self) -> Path:
        """Path of the flat append-only log file."""
        return self.log_path / LOG_FILE_NAME


class Config(BaseModel):
    """Main configuration model.

    Attributes:
        portal: SII portal configuration
        storage: Output directories
        transport: HTTPS transport configuration
        logging: Logging configuration
    """

    portal: PortalConfig = Field(default_factory=PortalConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
