"""
IPC - Request queue, wire codec, result decoders and socket transport.
"""

from .dispatch import DECODERS, decode_result
from .queue import PendingCall, RequestQueue
from .transport import Transport, TransportState, UnixSocketTransport
from .wire import decode_reply, encode_request, parse_reply

__all__ = [
    "DECODERS",
    "PendingCall",
    "RequestQueue",
    "Transport",
    "TransportState",
    "UnixSocketTransport",
    "decode_reply",
    "decode_result",
    "encode_request",
    "parse_reply",
]
