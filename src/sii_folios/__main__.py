"""Entry point for running sii_folios as a module.

This allows the package to be executed as:
    python -m sii_folios
"""

from sii_folios.cli.main import cli

if __name__ == "__main__":
    cli()
