"""
Wire codec for JSON-RPC 2.0 over the IPC socket.

Request:  {"jsonrpc": "2.0", "method": "eth_blockNumber", "id": 7, "params": []}
Response: {"jsonrpc": "2.0", "id": 7, "result": "0x1b4"}
Error:    {"jsonrpc": "2.0", "id": 7, "error": {"code": -32000, "message": "..."}}

One request per write and one response per read; replies split across
reads or coalesced into one read are not reassembled.
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from ..errors import ProtocolError, RpcError
from ..models import CallEnvelope

RESPONSE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "jsonrpc": {"type": "string"},
        "error": {
            "type": ["object", "null"],
            "properties": {
                "message": {"type": "string"},
                "code": {"type": "integer"},
            },
        },
    },
}

_validator = jsonschema.Draft202012Validator(RESPONSE_SCHEMA)


def encode_request(envelope: CallEnvelope) -> bytes:
    """Serialize an envelope to a newline-terminated JSON line."""
    return json.dumps(envelope.to_dict(), separators=(",", ":")).encode("utf-8") + b"\n"


def reply_id(obj: dict[str, Any]) -> int:
    """The reply's call id, or -1 when absent or not an integer."""
    value = obj.get("id")
    if isinstance(value, bool) or not isinstance(value, int):
        return -1
    return value


def parse_reply(data: bytes) -> dict[str, Any]:
    """
    Parse raw bytes into a response object.

    Raises:
        ProtocolError: If the bytes are not a JSON-RPC response object
    """
    try:
        obj = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolError(f"Response parse error: {exc}") from exc

    errors = sorted(_validator.iter_errors(obj), key=lambda e: list(e.path))
    if errors:
        raise ProtocolError(f"Response parse error: {errors[0].message}")
    return obj


def decode_reply(data: bytes, expected_id: int) -> Any:
    """
    Validate a reply against the active call and extract its result.

    Args:
        data: Raw bytes read from the socket
        expected_id: Call id of the active call

    Returns:
        The non-null ``result`` value

    Raises:
        ProtocolError: Parse failure, id mismatch or missing result
        RpcError: The daemon answered with an ``error`` object
    """
    obj = parse_reply(data)

    if reply_id(obj) != expected_id:
        raise ProtocolError("Call number mismatch")

    result = obj.get("result")
    if result is not None:
        return result

    error = obj.get("error")
    if error is not None:
        raise RpcError(error.get("message", "Unknown RPC error"), error.get("code", 0))

    raise ProtocolError("Result object undefined in IPC response")
