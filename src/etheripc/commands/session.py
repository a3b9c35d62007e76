"""
Session helpers shared by the CLI commands.

A session is one asyncio run: connect, run the command's calls, close.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Awaitable, Callable, TypeVar

import click
from eth_utils import is_address, to_checksum_address

from ..client import EtherIPC
from ..config import Settings
from ..errors import EtherIPCError

T = TypeVar("T")


def run_session(settings: Settings, action: Callable[[EtherIPC], Awaitable[T]]) -> T:
    """
    Connect to the daemon, run ``action`` and close the client.

    Raises:
        EtherIPCError: Whatever failure the client reported first
    """

    async def _main() -> T:
        client = EtherIPC(settings)
        try:
            await client.connect(settings.ipc_path)
            return await action(client)
        finally:
            client.close_app()

    return asyncio.run(_main())


def run_or_exit(settings: Settings, action: Callable[[EtherIPC], Awaitable[T]]) -> T:
    """Like ``run_session`` but prints the error and exits on failure."""
    try:
        return run_session(settings, action)
    except EtherIPCError as exc:
        message = exc.message
        if exc.code:
            message += f" (code {exc.code})"
        click.secho(f"ERROR: {message}", fg="red")
        sys.exit(exc.exit_code)


def address_param(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """Click callback accepting only 0x-prefixed 20-byte addresses."""
    if not is_address(value):
        raise click.BadParameter(f"not an Ethereum address: {value}")
    return value


def display_address(address: str) -> str:
    if is_address(address):
        return to_checksum_address(address)
    return address
