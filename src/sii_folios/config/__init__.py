"""Config module.

This module provides configuration management functionality.
"""

from sii_folios.config.manager import apply_request_overrides, load_config
from sii_folios.config.schema import (
    Config,
    LoggingConfig,
    PortalConfig,
    StorageConfig,
    TransportConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    "apply_request_overrides",
    # Configuration models
    "Config",
    "PortalConfig",
    "StorageConfig",
    "TransportConfig",
    "LoggingConfig",
]
