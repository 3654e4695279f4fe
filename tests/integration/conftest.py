"""Integration test fixtures and configuration.

This module provides fixtures that run the mock SII portal on a local port
so the real HTTP client, cookie handling and form encoding are exercised.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

import pytest
from werkzeug.serving import make_server

from sii_folios.config.schema import Config, PortalConfig
from sii_folios.mock_portal.app import create_app
from sii_folios.mock_portal.config import MockPortalConfig

logger = logging.getLogger(__name__)


@contextmanager
def running_mock_portal(config: MockPortalConfig) -> Iterator[tuple[str, object]]:
    """Serve a mock portal app in a background thread.

    Args:
        config: Mock portal configuration (the port is chosen by the OS).

    Yields:
        Tuple of (base_url, app).
    """
    app = create_app(config)
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base_url = f"http://127.0.0.1:{server.server_port}"
    logger.info(f"Mock portal running at {base_url}")
    try:
        yield base_url, app
    finally:
        server.shutdown()
        thread.join(timeout=5)


@pytest.fixture
def mock_portal_factory():
    """Start mock portals on demand; all are stopped at teardown.

    Returns:
        Callable taking MockPortalConfig keyword arguments and returning
        (base_url, app).
    """
    stack = []

    def start(**kwargs):
        context = running_mock_portal(MockPortalConfig(**kwargs))
        stack.append(context)
        return context.__enter__()

    yield start

    for context in reversed(stack):
        context.__exit__(None, None, None)


@pytest.fixture
def portal_config(app_config: Config):
    """Point the test configuration at a mock portal.

    Returns:
        Callable taking the portal base URL and returning a Config.
    """

    def build(base_url: str) -> Config:
        return app_config.model_copy(
            update={
                "portal": PortalConfig(
                    base_url=base_url,
                    login_url=f"{base_url}/cgi_AUT2000/CAutInicio.cgi?http://www.sii.cl",
                )
            }
        )

    return build
