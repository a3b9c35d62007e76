"""
Send - Transfer ether between accounts.

The node signs the transaction, so the sender must be one of its
accounts and unlocked first (see ``etheripc unlock``).
"""

from __future__ import annotations

import click

from ..client import EtherIPC
from ..config import Settings
from .session import address_param, display_address, run_or_exit


# VALUE may start with "-"; it is rejected by the client, not parsed as an option
@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("sender", callback=address_param)
@click.argument("recipient", callback=address_param)
@click.argument("value")
@click.pass_obj
def send(settings: Settings, sender: str, recipient: str, value: str) -> None:
    """Send VALUE ether from SENDER to RECIPIENT."""
    click.echo(f"  From:  {display_address(sender)}")
    click.echo(f"  To:    {display_address(recipient)}")
    click.echo(f"  Value: {value} ETH")
    click.echo("")

    async def _send(client: EtherIPC) -> str:
        return await client.send_transaction(sender, recipient, value)

    tx_hash = run_or_exit(settings, _send)
    click.secho("SUCCESS: Transaction submitted!", fg="green")
    click.echo(f"  TX: {tx_hash}")
