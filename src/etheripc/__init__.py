"""
etheripc - JSON-RPC client for an Ethereum node over its IPC socket.

One request in flight at a time, replies routed by call type, hex
quantities decoded to decimal / ether strings.
"""

__version__ = "0.4.0"

__all__ = [
    # Client
    "EtherIPC",
    # Settings
    "Settings",
    "load_settings",
    # Models
    "AccountInfo",
    "CallEnvelope",
    "CallIdCounter",
    "CallType",
    "ConnectionQuality",
    "LinkState",
    # Codec
    "BigInt",
    "hex_to_ether",
    "hex_to_unsigned",
    # Events
    "EventBus",
    # Errors
    "EtherIPCError",
    "LifecycleError",
    "ProtocolError",
    "RpcError",
    "TransportError",
    "ValidationError",
]

from .bigint import BigInt, hex_to_ether, hex_to_unsigned
from .client import EtherIPC
from .config import Settings, load_settings
from .errors import (
    EtherIPCError,
    LifecycleError,
    ProtocolError,
    RpcError,
    TransportError,
    ValidationError,
)
from .events import EventBus
from .models import (
    AccountInfo,
    CallEnvelope,
    CallIdCounter,
    CallType,
    ConnectionQuality,
    LinkState,
)
