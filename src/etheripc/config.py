"""
Configuration for the IPC client.

Settings come from the process environment, optionally seeded from
~/.etheripc/.env (the same layout the CLI reads its defaults from).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Default config directory
ETHERIPC_DIR = Path.home() / ".etheripc"
ETHERIPC_ENV = ETHERIPC_DIR / ".env"

DEFAULT_IPC_PATH = str(Path.home() / ".ethereum" / "geth.ipc")
DEFAULT_CONNECT_TIMEOUT = 2.0
DEFAULT_READ_CHUNK = 4096
DEFAULT_PEERS_FAIR = 3
DEFAULT_PEERS_GOOD = 6


@dataclass(frozen=True)
class Settings:
    """
    Client settings.

    Attributes:
        ipc_path: Unix socket of the node daemon
        connect_timeout: Seconds to wait for the socket to connect
        read_chunk_size: Max bytes taken per readable event
        peers_fair: Peer count from which the link counts as "fair"
        peers_good: Peer count from which the link counts as "good"
        decimal_point: Separator used when rendering ether amounts
        log_level: Logging level name for the CLI
    """
    ipc_path: str = DEFAULT_IPC_PATH
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_chunk_size: int = DEFAULT_READ_CHUNK
    peers_fair: int = DEFAULT_PEERS_FAIR
    peers_good: int = DEFAULT_PEERS_GOOD
    decimal_point: str = "."
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.read_chunk_size <= 0:
            raise ValueError("read_chunk_size must be positive")
        if not 0 <= self.peers_fair <= self.peers_good:
            raise ValueError("peer thresholds must satisfy 0 <= fair <= good")


def _env_number(name: str, default: float, kind: type) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return kind(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Load settings from .env file and environment.

    Args:
        env_path: Path to .env file (default: ~/.etheripc/.env)

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    env_path = env_path or ETHERIPC_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    ipc_path = os.environ.get("ETHERIPC_PATH") or DEFAULT_IPC_PATH

    return Settings(
        ipc_path=os.path.expanduser(ipc_path),
        connect_timeout=_env_number("ETHERIPC_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT, float),
        read_chunk_size=int(_env_number("ETHERIPC_READ_CHUNK", DEFAULT_READ_CHUNK, int)),
        peers_fair=int(_env_number("ETHERIPC_PEERS_FAIR", DEFAULT_PEERS_FAIR, int)),
        peers_good=int(_env_number("ETHERIPC_PEERS_GOOD", DEFAULT_PEERS_GOOD, int)),
        decimal_point=os.environ.get("ETHERIPC_DECIMAL_POINT") or ".",
        log_level=(os.environ.get("ETHERIPC_LOG_LEVEL") or "WARNING").strip().upper(),
    )
