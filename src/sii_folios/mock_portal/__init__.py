"""Mock SII portal for local development and integration tests."""

from .app import create_app, run_mock_portal
from .config import MockPortalConfig, load_mock_config

__all__ = ["create_app", "run_mock_portal", "MockPortalConfig", "load_mock_config"]
