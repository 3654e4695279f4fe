"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
per-request overrides and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from sii_folios.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from sii_folios.config.schema import Config
from sii_folios.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "SII_"

# Also read without the prefix; the SII_ form wins when both are set
LEGACY_ENV_NAMES = (
    "FOLIOS_PATH",
    "DEBUG_PATH",
    "LOG_PATH",
    "ENABLE_LOGGING",
    "ENABLE_HTML_DEBUG",
)


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Per-request overrides (see apply_request_overrides)
    2. CLI arguments (handled by caller)
    3. Environment variables (SII_* prefix)
    4. Configuration file (JSON)
    5. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.portal.portal_base_url
        'https://maullin.sii.cl'
    """
    # Load .env file if present in project root
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and the "
            f"{ENV_PREFIX}* environment variables."
        )


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config_dict
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            )
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            )
    else:
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        # Deep copy of defaults to avoid mutation
        return json.loads(json.dumps(DEFAULT_CONFIG))


def _getenv(name: str) -> Optional[str]:
    """Read ``SII_<name>``, falling back to ``<name>`` for legacy names.

    Args:
        name: Variable name without the prefix

    Returns:
        Variable value, or None when neither form is set
    """
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None and name in LEGACY_ENV_NAMES:
        value = os.getenv(name)
        if value is not None:
            logger.debug(f"Using unprefixed environment variable {name}")
    return value


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with SII_ prefix.

    The names in LEGACY_ENV_NAMES are also read without the prefix.

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed
    """
    # Portal section
    if servidor := _getenv("SERVIDOR"):
        config_dict.setdefault("portal", {})["servidor"] = servidor
        logger.debug("Override: servidor from environment")

    if base_url := _getenv("BASE_URL"):
        config_dict.setdefault("portal", {})["base_url"] = base_url
        logger.debug("Override: base_url from environment")

    if login_url := _getenv("LOGIN_URL"):
        config_dict.setdefault("portal", {})["login_url"] = login_url
        logger.debug("Override: login_url from environment")

    # Storage section
    if folios_path := _getenv("FOLIOS_PATH"):
        config_dict.setdefault("storage", {})["folios_path"] = folios_path
        logger.debug("Override: folios_path from environment")

    if debug_path := _getenv("DEBUG_PATH"):
        config_dict.setdefault("storage", {})["debug_path"] = debug_path
        logger.debug("Override: debug_path from environment")

    # Transport section
    if verify_tls := _getenv("VERIFY_TLS"):
        config_dict.setdefault("transport", {})["verify_tls"] = _parse_bool(verify_tls)
        logger.debug("Override: verify_tls from environment")

    if timeout_connect := _getenv("TIMEOUT_CONNECT"):
        config_dict.setdefault("transport", {})["timeout_connect"] = _parse_number(
            "TIMEOUT_CONNECT", timeout_connect
        )
        logger.debug("Override: timeout_connect from environment")

    if timeout_read := _getenv("TIMEOUT_READ"):
        config_dict.setdefault("transport", {})["timeout_read"] = _parse_number(
            "TIMEOUT_READ", timeout_read
        )
        logger.debug("Override: timeout_read from environment")

    # Logging section
    if log_path := _getenv("LOG_PATH"):
        config_dict.setdefault("logging", {})["log_path"] = log_path
        logger.debug("Override: log_path from environment")

    if log_level := _getenv("LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if enable_logging := _getenv("ENABLE_LOGGING"):
        config_dict.setdefault("logging", {})["enabled"] = _parse_bool(enable_logging)
        logger.debug("Override: enabled from environment")

    if html_debug := _getenv("ENABLE_HTML_DEBUG"):
        config_dict.setdefault("logging", {})["html_debug"] = _parse_bool(html_debug)
        logger.debug("Override: html_debug from environment")

    if redact_pii := _getenv("REDACT_PII"):
        config_dict.setdefault("logging", {})["redact_pii"] = _parse_bool(redact_pii)
        logger.debug("Override: redact_pii from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string.

    Args:
        value: String value to parse (case-insensitive)

    Returns:
        Boolean value
    """
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_number(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid value for {ENV_PREFIX}{name}: {value!r}. Must be a number of seconds."
        )


def apply_request_overrides(
    config: Config,
    servidor: Optional[str] = None,
    enable_logging: Optional[bool] = None,
    enable_html_debug: Optional[bool] = None,
) -> Config:
    """Return a copy of the configuration with per-request overrides applied.

    The original configuration is never mutated, so concurrent requests
    cannot see each other's overrides.

    Args:
        config: Base configuration
        servidor: Portal environment for this request
        enable_logging: Whether this run logs workflow events
        enable_html_debug: Whether this run dumps portal responses

    Returns:
        New validated Config instance

    Raises:
        ConfigurationError: If an override is invalid

    Example:
        >>> cfg = apply_request_overrides(load_config(), servidor="palena")
        >>> cfg.portal.servidor
        'palena'
    """
    data = config.model_dump()
    if servidor is not None:
        data["portal"]["servidor"] = servidor
        if config.portal.base_url and servidor.strip().lower() != config.portal.servidor:
            logger.warning(
                f"servidor={servidor} does not change the folio pages URL: "
                f"portal.base_url is set to {config.portal.base_url}"
            )
    if enable_logging is not None:
        data["logging"]["enabled"] = enable_logging
    if enable_html_debug is not None:
        data["logging"]["html_debug"] = enable_html_debug

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid request override:\n{e}")
