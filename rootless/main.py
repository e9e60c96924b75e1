"""
rootless — CLI entrypoint.

Usage:
    python -m rootless.main --help
    python -m rootless.main list
    python -m rootless.main install go
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from rootless import __version__
from rootless.core.observability.logging_config import (
    FILE_ENV_VAR,
    FILE_LEVEL_ENV_VAR,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="rootless")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $ROOTLESS_CONFIG or ~/.config/rootless/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """rootless — install developer tools without root privileges."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(verbose=verbose, quiet=quiet, debug=debug),
        log_file=os.environ.get(FILE_ENV_VAR),
        log_file_level=os.environ.get(FILE_LEVEL_ENV_VAR),
    )


# ── Register command groups ─────────────────────────────────────

from rootless.ui.cli.lifecycle import configure, install, list_tools, repair, uninstall  # noqa: E402
from rootless.ui.cli.menu import menu  # noqa: E402

cli.add_command(list_tools)
cli.add_command(install)
cli.add_command(uninstall)
cli.add_command(repair)
cli.add_command(configure)
cli.add_command(menu)


if __name__ == "__main__":
    cli()
