"""CLI commands for the HTTP API and the mock SII portal."""

import logging
from pathlib import Path
from typing import Optional

import click

from sii_folios.api.app import run_server
from sii_folios.mock_portal.app import run_mock_portal
from sii_folios.mock_portal.config import FAILABLE_STEPS, load_mock_config

logger = logging.getLogger(__name__)


@click.command(name="serve")
@click.option("--host", default="0.0.0.0", show_default=True, help="Host address")
@click.option("--port", type=int, default=8000, show_default=True, help="Server port")
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, debug: bool) -> None:
    """Run the folios HTTP API (POST /folios).

    Examples:

        sii-folios serve --port 8000
    """
    run_server(host=host, port=port, config=ctx.obj["config"], debug=debug)


@click.group(name="mock")
def mock_group() -> None:
    """Manage the mock SII portal.

    The mock portal emulates the certificate login, the folio pages and
    logout for local testing.
    """


@mock_group.command(name="start")
@click.option("--host", default=None, help="Host address (overrides config file)")
@click.option("--port", type=int, default=None, help="Server port (overrides config file)")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: mocks/portal.json)",
)
@click.option(
    "--fail-step",
    type=click.Choice(FAILABLE_STEPS),
    default=None,
    help="Answer this step with an error page",
)
@click.option("--debug", is_flag=True, help="Enable debug mode")
def start_mock(
    host: Optional[str],
    port: Optional[int],
    config_file: Optional[Path],
    fail_step: Optional[str],
    debug: bool,
) -> None:
    """Start the mock SII portal in the foreground.

    Examples:

        sii-folios mock start --port 8089

        sii-folios mock start --fail-step of_confirma_folio
    """
    try:
        config = load_mock_config(config_file)
    except (ValueError, FileNotFoundError) as e:
        click.echo(click.style("✗ ", fg="red", bold=True) + str(e), err=True)
        raise click.exceptions.Exit(1)

    overrides = {}
    if host:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if fail_step:
        overrides["fail_step"] = fail_step
    if overrides:
        config = config.model_copy(update=overrides)

    click.echo(f"Mock SII portal: http://{config.host}:{config.port}")
    run_mock_portal(config, debug=debug)
