"""Error types raised and reported by the IPC client."""

from __future__ import annotations


class EtherIPCError(RuntimeError):
    """Base class for every failure surfaced through ``EtherIPC.fail``.

    Attributes:
        message: Human readable error text
        code: Numeric code (daemon error code, errno, or 0)
    """

    exit_code: int = 1

    def __init__(self, message: str, code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class TransportError(EtherIPCError):
    exit_code = 2


class ProtocolError(EtherIPCError):
    exit_code = 3


class RpcError(EtherIPCError):
    exit_code = 4


class ValidationError(EtherIPCError):
    exit_code = 5


class LifecycleError(EtherIPCError):
    exit_code = 6


__all__ = [
    "EtherIPCError",
    "LifecycleError",
    "ProtocolError",
    "RpcError",
    "TransportError",
    "ValidationError",
]
