"""
BigInt - Arbitrary precision hex/decimal codec.

The daemon returns every quantity as a 0x-prefixed hex string. Python ints
are already unbounded, so this module is mostly about the conversions:
hex in, decimal / hex / ether strings out, with explicit errors for
malformed input instead of silently reading it as zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext

# 1 ether = 10^18 wei
WEI_DECIMALS = 18
WEI_PER_ETHER = 10**WEI_DECIMALS

UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class BigInt:
    value: int

    @classmethod
    def parse_hex(cls, text: str, base: int = 16) -> "BigInt":
        """
        Parse a hex (or other base) string into a BigInt.

        Args:
            text: Digits, optionally 0x-prefixed. Empty or bare "0x" is zero.
            base: Numeric base of the digits (default 16)

        Returns:
            Parsed BigInt

        Raises:
            ValueError: If the string holds anything but digits of ``base``
        """
        if not isinstance(text, str):
            raise ValueError(f"Expected a hex string, got {type(text).__name__}")

        digits = text.strip()
        if base == 16 and digits[:2] in ("0x", "0X"):
            digits = digits[2:]
        if not digits:
            return cls(0)
        # int() would also accept signs and underscores
        if not digits.isalnum():
            raise ValueError(f"Invalid base-{base} number: {text!r}")

        try:
            return cls(int(digits, base))
        except ValueError:
            raise ValueError(f"Invalid base-{base} number: {text!r}") from None

    @classmethod
    def from_int(cls, value: int) -> "BigInt":
        return cls(int(value))

    @classmethod
    def from_double(cls, value: float) -> "BigInt":
        """
        Convert a float to the nearest integer.

        Raises:
            ValueError: If ``value`` is negative, NaN or infinite
        """
        if not math.isfinite(value):
            raise ValueError(f"Cannot convert {value!r} to an integer")
        if value < 0:
            raise ValueError(f"Negative values are not supported: {value!r}")
        return cls(int(round(value)))

    @classmethod
    def from_ether(cls, value: float | str | Decimal) -> "BigInt":
        """
        Scale an ether amount to wei exactly.

        Goes through the decimal representation of ``value`` so that e.g.
        0.1 ether becomes exactly 10^17 wei. Sub-wei fractions are rounded.
        """
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid ether amount: {value!r}") from None
        if not amount.is_finite() or amount < 0:
            raise ValueError(f"Invalid ether amount: {value!r}")
        with localcontext() as ctx:
            # wide enough that no significant digit of the amount is rounded
            ctx.prec = len(amount.as_tuple().digits) + WEI_DECIMALS + 1
            wei = (amount * WEI_PER_ETHER).to_integral_value()
        return cls(int(wei))

    def to_unsigned(self) -> int:
        """Return the value as an unsigned 64-bit integer.

        Raises:
            OverflowError: If the value does not fit in 64 bits
        """
        if self.value < 0 or self.value > UINT64_MAX:
            raise OverflowError(f"Value {self.value} does not fit in 64 bits")
        return self.value

    def to_decimal_string(self) -> str:
        return str(self.value)

    def to_hex(self) -> str:
        return hex(self.value)

    def to_ether_string(self, decimal_point: str = ".") -> str:
        """
        Render a wei amount as ether.

        The decimal digits are left-padded to at least 19 characters so
        there is always one digit before the point, then the point is
        inserted 18 digits from the end: 5 -> "0.000000000000000005".
        """
        digits = self.to_decimal_string().rjust(WEI_DECIMALS + 1, "0")
        split = len(digits) - WEI_DECIMALS
        return digits[:split] + decimal_point + digits[split:]

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.to_decimal_string()


def hex_to_unsigned(text: str) -> int:
    """Decode a 0x-prefixed quantity into an unsigned 64-bit int."""
    return BigInt.parse_hex(text).to_unsigned()


def hex_to_ether(text: str, decimal_point: str = ".") -> str:
    """Decode a 0x-prefixed wei quantity into an ether string."""
    return BigInt.parse_hex(text).to_ether_string(decimal_point)
