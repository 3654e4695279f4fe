"""Flask application for the mock SII portal."""

import logging
from typing import Optional

from flask import Flask, jsonify

from .config import MockPortalConfig, load_mock_config
from .portal_endpoints import STATE_KEY, register_portal_endpoints

logger = logging.getLogger("sii_folios.mock_portal")


def create_app(config: Optional[MockPortalConfig] = None) -> Flask:
    """Create a mock portal application with fresh state.

    Args:
        config: Mock portal configuration (defaults apply when None)

    Returns:
        Flask application; its state is available as
        ``app.config["MOCK_PORTAL_STATE"]``
    """
    config = config or MockPortalConfig()
    app = Flask(__name__)
    register_portal_endpoints(app, config)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint."""
        state = app.config[STATE_KEY]
        return jsonify(
            {
                "status": "healthy",
                "active_sessions": len(state.sessions),
                "request_count": len(state.requests),
                "logout_count": state.logout_count,
                "fail_step": config.fail_step,
            }
        ), 200

    return app


def run_mock_portal(config: Optional[MockPortalConfig] = None, debug: bool = False) -> None:
    """Run the mock portal server.

    Args:
        config: Mock portal configuration (loads from file if not provided)
        debug: Enable debug mode (default: False)
    """
    if config is None:
        config = load_mock_config()

    app = create_app(config)
    base = f"http://{config.host}:{config.port}"
    logger.info(f"Starting mock SII portal on {base}")
    logger.info(f"Point the client at it with SII_BASE_URL={base}")
    logger.info(
        f"and SII_LOGIN_URL={base}/cgi_AUT2000/CAutInicio.cgi?http://www.sii.cl"
    )

    app.run(host=config.host, port=config.port, debug=debug, use_reloader=False)
