"""Configuration management for the mock SII portal."""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from sii_folios.config.schema import STEP_TIMEOUT_KEYS

# Steps the mock can be told to fail (logout never fails)
FAILABLE_STEPS = tuple(step for step in STEP_TIMEOUT_KEYS if step != "logout")

DEFAULT_CONFIG_FILE = Path("mocks/portal.json")


class MockPortalConfig(BaseModel):
    """Mock portal configuration model.

    Configuration precedence:
    1. Environment variables (MOCK_PORTAL_* prefix)
    2. JSON config file
    3. Default values

    Attributes:
        host: Server host address
        port: HTTP server port
        log_level: Logging level
        fail_step: Step code answered with an error page (None = all succeed)
        failure_message: Text of the error page heading
        expire_session_at: Step code answered with an expired-session page
        business_name: Company name written into generated CAF files
    """

    host: str = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=8089, description="HTTP server port")
    log_level: str = Field(default="INFO", description="Logging level")
    fail_step: Optional[str] = Field(default=None, description="Step answered with an error page")
    failure_message: str = Field(
        default="Error: No se pudo procesar la solicitud",
        description="Heading of the error page",
    )
    expire_session_at: Optional[str] = Field(
        default=None, description="Step answered with an expired-session page"
    )
    business_name: str = Field(default="EMPRESA DE PRUEBA SPA")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        if not 0 <= v <= 65535:
            raise ValueError(f"Invalid port {v}. Must be between 0 and 65535.")
        return v

    @field_validator("fail_step", "expire_session_at")
    @classmethod
    def validate_step(cls, v: Optional[str]) -> Optional[str]:
        """Validate step code."""
        if v is not None and v not in FAILABLE_STEPS:
            raise ValueError(
                f"Invalid step '{v}'. Must be one of: {', '.join(FAILABLE_STEPS)}"
            )
        return v


def load_mock_config(config_file: Optional[Path] = None) -> MockPortalConfig:
    """Load mock portal configuration from file and environment variables.

    Args:
        config_file: Path to configuration JSON file. Defaults to mocks/portal.json

    Returns:
        MockPortalConfig instance with merged configuration

    Raises:
        FileNotFoundError: If config file specified but not found
        ValueError: If configuration is invalid
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_data = {}
    if config_file.exists():
        try:
            with open(config_file, encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Failed to parse configuration file '{config_file}': {e}. "
                f"Ensure the file contains valid JSON."
            )
    elif config_file != DEFAULT_CONFIG_FILE:
        raise FileNotFoundError(
            f"Configuration file not found: '{config_file}'. "
            f"Ensure the file exists or check the path."
        )

    env_prefix = "MOCK_PORTAL_"
    for key in MockPortalConfig.model_fields.keys():
        env_key = f"{env_prefix}{key.upper()}"
        if env_key in os.environ:
            value = os.environ[env_key]
            if key == "port":
                try:
                    value = int(value)
                except ValueError:
                    raise ValueError(
                        f"Invalid value for {env_key}: '{value}'. Must be an integer."
                    )
            config_data[key] = value

    try:
        return MockPortalConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
