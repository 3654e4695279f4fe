"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "portal": {
        # maullin is the SII certification environment, palena production
        "servidor": "maullin",
        # None means https://<servidor>.sii.cl
        "base_url": None,
        "login_url": "https://herculesr.sii.cl/cgi_AUT2000/CAutInicio.cgi?http://www.sii.cl",
    },
    "storage": {
        "folios_path": "storage/folios",
        "debug_path": "storage/debug",
    },
    "transport": {
        "verify_tls": True,
        "timeout_connect": 10,
        "timeout_read": 60,
        # Per-step read timeout overrides keyed by step code
        "step_timeouts": {},
    },
    "logging": {
        "enabled": True,
        "level": "INFO",
        "log_path": "storage/logs",
        "html_debug": True,
        "redact_pii": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"

# Name of the flat log file inside logging.log_path
LOG_FILE_NAME = "log.txt"
