"""
Info - Show what the node reports about itself.
"""

from __future__ import annotations

import click

from ..client import EtherIPC
from ..config import Settings
from .session import run_or_exit


@click.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Show connection state, peers, block number and gas price."""

    async def _query(client: EtherIPC) -> dict:
        peers = await client.get_peer_count()
        block = await client.get_block_number()
        gas_price = await client.get_gas_price()
        return {
            "state": client.connection_state_str,
            "peers": peers,
            "block": block,
            "gas_price": gas_price,
            "filter_id": client.pending_filter_id,
        }

    result = run_or_exit(settings, _query)

    click.echo(click.style("  Socket:       ", dim=True) + settings.ipc_path)
    click.echo(click.style("  State:        ", dim=True) + result["state"])
    click.echo(click.style("  Peers:        ", dim=True) + str(result["peers"]))
    click.echo(click.style("  Block:        ", dim=True) + str(result["block"]))
    click.echo(click.style("  Gas price:    ", dim=True) + f"{result['gas_price']} ETH")
    if result["filter_id"] is not None:
        click.echo(click.style("  Tx filter:    ", dim=True) + hex(result["filter_id"]))
