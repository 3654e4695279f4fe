"""Main CLI entry point for the SII folios service.

This module provides the main Click command group for the sii-folios CLI.
"""

from pathlib import Path
from typing import Optional

import click

from sii_folios import __version__
from sii_folios.cli.folios_commands import request_folios
from sii_folios.cli.server_commands import mock_group, serve
from sii_folios.config import load_config
from sii_folios.logging_audit import configure_logging
from sii_folios.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="sii-folios")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (RUTs, certificate names) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """SII Folios - obtain CAF files from the Chilean SII portal.

    Automates the folio request workflow (login with certificate, request,
    confirm, generate, download) and exposes it as a CLI and an HTTP API.

    Common usage:

        # Request folios 1-50 of type 33
        sii-folios request --folio-inicial 1 --folio-final 50 --tipo-dte 33 \\
            --rut-cert 12345678-5 --rut-empresa 76123456-7 --cert cert.pem

        # Run the HTTP API
        sii-folios serve --port 8000

        # Run the mock portal for local testing
        sii-folios mock start

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file

    # Precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = redact_pii if redact_pii else config_obj.logging.redact_pii

    configure_logging(
        level=log_level,
        log_file=log_file_path,
        redact_pii=redact_pii_setting,
    )


# Register commands
cli.add_command(request_folios)
cli.add_command(serve)
cli.add_command(mock_group)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        sii-folios config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo("\nPortal:")
        click.echo(f"  Servidor:    {config_obj.portal.servidor}")
        click.echo(f"  Base URL:    {config_obj.portal.portal_base_url}")
        click.echo(f"  Login URL:   {config_obj.portal.login_url}")

        click.echo("\nStorage:")
        click.echo(f"  Folios:      {config_obj.storage.folios_path}")
        click.echo(f"  Debug HTML:  {config_obj.storage.debug_path}")

        click.echo("\nTransport:")
        click.echo(f"  Verify TLS:  {config_obj.transport.verify_tls}")
        click.echo(
            f"  Timeouts:    {config_obj.transport.timeout_connect}s connect, "
            f"{config_obj.transport.timeout_read}s read"
        )

        click.echo("\nLogging:")
        click.echo(f"  Enabled:     {config_obj.logging.enabled}")
        click.echo(f"  Level:       {config_obj.logging.level}")
        click.echo(f"  Log file:    {config_obj.logging.log_file}")
        click.echo(f"  HTML debug:  {config_obj.logging.html_debug}")
        click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"sii-folios version {__version__}")


if __name__ == "__main__":
    cli()
