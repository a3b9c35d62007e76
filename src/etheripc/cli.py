"""
etheripc CLI

Command-line interface to an Ethereum node over its IPC socket.

Commands:
  info            - Connection state, peers, block number, gas price
  accounts        - List accounts with balance and transaction count
  new-account     - Create an account in the node's keystore
  delete-account  - Delete an account from the node's keystore
  unlock          - Unlock an account for sending
  send            - Send ether between accounts
  config          - Show the effective settings
"""

from __future__ import annotations

import dataclasses
import sys
from typing import Optional

import click

from . import __version__
from .config import load_settings
from .log import configure_logging


# ============ Banner ============


def _print_banner() -> None:
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("E T H E R I P C", fg="bright_white", bold=True)
        + click.style(f"  v{__version__}", dim=True)
    )
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="etheripc")
@click.option("--ipc-path", envvar="ETHERIPC_PATH", default=None, help="Node IPC socket path")
@click.option(
    "--timeout",
    envvar="ETHERIPC_CONNECT_TIMEOUT",
    type=float,
    default=None,
    help="Connect timeout in seconds",
)
@click.option("--verbose", "-v", count=True, help="More logging (-vv for debug)")
@click.pass_context
def cli(
    ctx: click.Context,
    ipc_path: Optional[str],
    timeout: Optional[float],
    verbose: int,
) -> None:
    """etheripc: talk to an Ethereum node over IPC."""
    try:
        settings = load_settings()
        overrides: dict = {}
        if ipc_path:
            overrides["ipc_path"] = ipc_path
        if timeout is not None:
            overrides["connect_timeout"] = timeout
        if verbose:
            overrides["log_level"] = "DEBUG" if verbose > 1 else "INFO"
        settings = dataclasses.replace(settings, **overrides)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    configure_logging(settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Commands ============

from .commands.info import info
from .commands.accounts import accounts, delete_account, new_account, unlock
from .commands.send import send

cli.add_command(info)
cli.add_command(accounts)
cli.add_command(new_account)
cli.add_command(delete_account)
cli.add_command(unlock)
cli.add_command(send)


@cli.command("config")
@click.pass_obj
def show_config(settings) -> None:
    """Show the effective settings."""
    for field in dataclasses.fields(settings):
        click.echo(
            click.style(f"  {field.name + ':':<18}", dim=True)
            + str(getattr(settings, field.name))
        )


# ============ Entry Points ============


def main() -> None:
    """etheripc CLI entry point."""
    # Ensure UTF-8 output on Windows (for the banner glyphs)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
