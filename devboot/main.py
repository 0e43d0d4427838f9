"""
devboot — CLI entrypoint.

Usage:
    devboot --help
    devboot tools list
    devboot tools install git bat
"""

from __future__ import annotations

import os

import click

from devboot import __version__
from devboot.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_log_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="devboot")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """devboot — bootstrap a developer machine."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_log_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
        quiet_third_party=not debug,
    )


# ── Register sub-command groups from devboot/ui/cli/ ────────────────

from devboot.ui.cli.tools import tools

cli.add_command(tools)


if __name__ == "__main__":
    cli()
