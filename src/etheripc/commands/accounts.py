"""
Accounts - Manage the node's accounts.

Accounts live in the node's keystore; these commands only ask the node
to list, create, delete or unlock them.
"""

from __future__ import annotations

import sys

import click

from ..client import EtherIPC
from ..config import Settings
from .session import address_param, display_address, run_or_exit


@click.command()
@click.pass_obj
def accounts(settings: Settings) -> None:
    """List accounts with balance and transaction count."""

    async def _list(client: EtherIPC) -> list:
        return await client.get_accounts()

    result = run_or_exit(settings, _list)

    if not result:
        click.echo("No accounts.")
        return

    click.echo(f"Accounts: {len(result)}")
    for account in result:
        click.echo(
            f"  {display_address(account.hash)}  "
            + click.style(f"{account.balance} ETH", fg="bright_white")
            + click.style(f"  ({account.transaction_count} tx)", dim=True)
        )


@click.command("new-account")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_obj
def new_account(settings: Settings, password: str) -> None:
    """Create a new account in the node's keystore."""

    async def _create(client: EtherIPC) -> str:
        return await client.new_account(password)

    address = run_or_exit(settings, _create)
    click.secho("Account created.", fg="green")
    click.echo(f"  Address: {display_address(address)}")


@click.command("delete-account")
@click.argument("address", callback=address_param)
@click.option("--password", prompt=True, hide_input=True)
@click.pass_obj
def delete_account(settings: Settings, address: str, password: str) -> None:
    """Delete ADDRESS from the node's keystore."""

    async def _delete(client: EtherIPC) -> bool:
        return await client.delete_account(address, password)

    if run_or_exit(settings, _delete):
        click.secho(f"Deleted {display_address(address)}", fg="green")
    else:
        click.secho(f"Node refused to delete {display_address(address)}", fg="yellow")
        sys.exit(1)


@click.command()
@click.argument("address", callback=address_param)
@click.option("--password", prompt=True, hide_input=True)
@click.option("--duration", default=300, type=click.IntRange(min=0), help="Seconds to stay unlocked")
@click.pass_obj
def unlock(settings: Settings, address: str, password: str, duration: int) -> None:
    """Unlock ADDRESS for sending transactions."""

    async def _unlock(client: EtherIPC) -> bool:
        return await client.unlock_account(address, password, duration)

    if run_or_exit(settings, _unlock):
        click.secho(f"Unlocked {display_address(address)} for {duration}s", fg="green")
    else:
        click.secho(f"Node refused to unlock {display_address(address)}", fg="yellow")
        sys.exit(1)
