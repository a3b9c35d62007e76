"""
Data model for IPC calls, accounts and connection state.
"""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass
from typing import Any, Iterator, Optional


class CallType(enum.Enum):
    """Kind of call; the value is the JSON-RPC method bound to it."""

    LIST_ACCOUNTS = "personal_listAccounts"
    GET_BALANCE = "eth_getBalance"
    GET_TRANSACTION_COUNT = "eth_getTransactionCount"
    NEW_ACCOUNT = "personal_newAccount"
    DELETE_ACCOUNT = "personal_deleteAccount"
    SEND_TRANSACTION = "eth_sendTransaction"
    UNLOCK_ACCOUNT = "personal_unlockAccount"
    GET_BLOCK_NUMBER = "eth_blockNumber"
    GET_PEER_COUNT = "net_peerCount"
    GET_GAS_PRICE = "eth_gasPrice"
    NEW_PENDING_TRANSACTION_FILTER = "eth_newPendingTransactionFilter"

    @property
    def method(self) -> str:
        return self.value


@dataclass(frozen=True)
class CallEnvelope:
    """
    One JSON-RPC call.

    Attributes:
        call_id: Unique, increasing id; echoed back by the daemon
        call_type: Kind of call, selects the reply decoder
        method: JSON-RPC method name
        params: Positional parameters
        index: Caller's correlation slot (e.g. account position), -1 if unused
    """

    call_id: int
    call_type: CallType
    method: str
    params: tuple[Any, ...] = ()
    index: int = -1

    def to_dict(self) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": self.method,
            "id": self.call_id,
            "params": list(self.params),
        }


class CallIdCounter:
    """Monotonic call id source. Never reset, not even on reconnect."""

    def __init__(self, start: int = 0) -> None:
        self._ids: Iterator[int] = itertools.count(start)

    def next_id(self) -> int:
        return next(self._ids)


@dataclass
class AccountInfo:
    """An account and the details filled in by its follow-up calls."""

    hash: str
    balance: Optional[str] = None
    transaction_count: Optional[int] = None

    @property
    def complete(self) -> bool:
        return self.balance is not None and self.transaction_count is not None


class LinkState(enum.Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAULTED = "faulted"


class ConnectionQuality(enum.IntEnum):
    """Externally visible connection state, tiered by peer count."""

    DISCONNECTED = 0
    POOR = 1
    FAIR = 2
    GOOD = 3

    @property
    def label(self) -> str:
        if self is ConnectionQuality.DISCONNECTED:
            return "Disconnected"
        return f"Connected ({self.name.lower()} peer count)"

    @classmethod
    def for_peers(cls, peer_count: int, fair: int, good: int) -> "ConnectionQuality":
        if peer_count >= good:
            return cls.GOOD
        if peer_count >= fair:
            return cls.FAIR
        return cls.POOR

