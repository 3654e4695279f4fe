"""Flask application exposing the folios workflow over HTTP."""

import base64
import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, Response, jsonify, request

from sii_folios import __version__
from sii_folios.api.request_model import FoliosRequestBody, parse_folios_request
from sii_folios.config.manager import apply_request_overrides, load_config
from sii_folios.config.schema import Config
from sii_folios.models.outcomes import WorkflowResult
from sii_folios.portal.service import obtain_folios
from sii_folios.utils.exceptions import ConfigurationError, InputError

logger = logging.getLogger(__name__)

# Server state tracking
_server_start_time: Optional[datetime] = None
_config: Optional[Config] = None

# Create Flask app
app = Flask(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def error_response(
    message: str,
    http_status: int,
    code: Optional[str] = None,
    error: Optional[str] = None,
) -> tuple[Response, int]:
    """Build the JSON error body.

    Args:
        message: Human readable message
        http_status: HTTP status code
        code: Failure code (step code, "timeout", "unhandled", "input")
        error: Raw exception text, if any

    Returns:
        Tuple of (Response object, HTTP status code)
    """
    return (
        jsonify({"success": False, "message": message, "code": code, "error": error}),
        http_status,
    )


def success_response(result: WorkflowResult, body: FoliosRequestBody) -> Response:
    """Build the success response: raw XML or JSON with Base64 content."""
    artifact = result.artifact
    if body.return_xml:
        filename = f"folios_{body.tipo_dte}_{body.folio_inicial}-{body.folio_final}.xml"
        return Response(
            artifact.content,
            mimetype="application/xml",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return jsonify(
        {
            "success": True,
            "message": "folios obtained successfully",
            "filename": artifact.filename,
            "path": str(artifact.path),
            "xml": base64.b64encode(artifact.content).decode("ascii"),
        }
    )


@app.after_request
def add_cors_headers(response: Response) -> Response:
    """Allow cross-origin callers.

    Args:
        response: Flask response object

    Returns:
        Modified response with headers
    """
    response.headers.update(CORS_HEADERS)
    return response


@app.route("/folios", methods=["POST", "OPTIONS"])
def request_folios():
    """Obtain a CAF file.

    Status codes: 200 on success, 400 for input errors and portal step
    failures, 500 for unhandled faults.
    """
    if request.method == "OPTIONS":
        return Response(status=200)

    data = request.get_json(force=True, silent=True)
    if data is None:
        return error_response("Invalid request body. JSON expected.", 400, code="input")

    try:
        body = parse_folios_request(data)
        job = body.to_job()
        run_config = apply_request_overrides(
            _get_config(),
            servidor=body.servidor,
            enable_logging=body.enable_logging,
            enable_html_debug=body.enable_html_debug,
        )
        result = obtain_folios(job, run_config)

    except (InputError, ConfigurationError) as e:
        logger.warning(f"Rejected folios request: {e}")
        return error_response(str(e), 400, code="input")

    except Exception as e:
        logger.error(f"Internal error handling folios request: {e}", exc_info=True)
        return error_response("internal server error", 500, code="unhandled", error=str(e))

    if not result.is_success:
        failure = result.failure
        http_status = 500 if result.is_fault else 400
        return error_response(
            failure.message, http_status, code=failure.code, error=failure.error
        )

    return success_response(result, body)


@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    uptime_seconds = 0
    if _server_start_time:
        uptime_seconds = int((datetime.now(timezone.utc) - _server_start_time).total_seconds())

    config = _get_config()
    return jsonify(
        {
            "status": "healthy",
            "version": __version__,
            "servidor": config.portal.servidor,
            "uptime_seconds": uptime_seconds,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    ), 200


@app.errorhandler(404)
def not_found(error):
    """Handle unknown paths with a JSON body."""
    return error_response("Not found.", 404)


@app.errorhandler(405)
def method_not_allowed(error):
    """Handle wrong HTTP methods with a JSON body."""
    return error_response("Method not allowed. Use POST.", 405)


def initialize_app(config: Config) -> None:
    """Initialize Flask app with configuration.

    Args:
        config: Application configuration
    """
    global _config, _server_start_time
    _config = config
    _server_start_time = datetime.now(timezone.utc)
    logger.info(
        f"Folios API initialized: servidor={config.portal.servidor}, "
        f"folios_path={config.storage.folios_path}"
    )


def run_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    config: Optional[Config] = None,
    debug: bool = False,
) -> None:
    """Run the Flask API server.

    Args:
        host: Host address (default: 0.0.0.0)
        port: Port number (default: 8000)
        config: Application configuration (loads from file if not provided)
        debug: Enable debug mode (default: False)
    """
    if config is None:
        config = load_config()

    initialize_app(config)

    logger.info(f"Starting SII folios API on http://{host}:{port}")
    logger.info(f"Endpoint: POST http://{host}:{port}/folios")

    app.run(host=host, port=port, debug=debug, use_reloader=False)
