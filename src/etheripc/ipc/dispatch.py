"""
Result decoders, keyed by call type.

Each decoder turns the raw JSON ``result`` of one call type into the value
handed to the client's handler for that type.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from ..bigint import hex_to_ether, hex_to_unsigned
from ..errors import ProtocolError
from ..models import CallType

Decoder = Callable[[Any, str], Any]


def _expect(value: Any, kind: type, what: str) -> Any:
    if isinstance(value, bool) and kind is not bool:
        raise TypeError(f"expected {what}, got bool")
    if not isinstance(value, kind):
        raise TypeError(f"expected {what}, got {type(value).__name__}")
    return value


def decode_address_list(result: Any, decimal_point: str) -> List[str]:
    addresses = _expect(result, list, "an address list")
    return [_expect(address, str, "an address string") for address in addresses]


def decode_ether(result: Any, decimal_point: str) -> str:
    return hex_to_ether(_expect(result, str, "a hex quantity"), decimal_point)


def decode_unsigned(result: Any, decimal_point: str) -> int:
    return hex_to_unsigned(_expect(result, str, "a hex quantity"))


def decode_string(result: Any, decimal_point: str) -> str:
    return _expect(result, str, "a string")


def decode_bool(result: Any, decimal_point: str) -> bool:
    return _expect(result, bool, "a boolean")


DECODERS: Dict[CallType, Decoder] = {
    CallType.LIST_ACCOUNTS: decode_address_list,
    CallType.GET_BALANCE: decode_ether,
    CallType.GET_TRANSACTION_COUNT: decode_unsigned,
    CallType.NEW_ACCOUNT: decode_string,
    CallType.DELETE_ACCOUNT: decode_bool,
    CallType.SEND_TRANSACTION: decode_string,
    CallType.UNLOCK_ACCOUNT: decode_bool,
    CallType.GET_BLOCK_NUMBER: decode_unsigned,
    CallType.GET_PEER_COUNT: decode_unsigned,
    CallType.GET_GAS_PRICE: decode_ether,
    CallType.NEW_PENDING_TRANSACTION_FILTER: decode_unsigned,
}

_missing = set(CallType) - set(DECODERS)
if _missing:
    raise ImportError(f"No decoder for call types: {sorted(t.name for t in _missing)}")


def decode_result(call_type: CallType, result: Any, decimal_point: str = ".") -> Any:
    """
    Decode a reply ``result`` for ``call_type``.

    Raises:
        ProtocolError: If the result has the wrong shape or bad hex digits
    """
    try:
        return DECODERS[call_type](result, decimal_point)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ProtocolError(f"Invalid result for {call_type.method}: {exc}") from exc
