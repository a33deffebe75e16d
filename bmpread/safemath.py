"""Overflow-checked arithmetic for sizes derived from untrusted headers."""

from __future__ import annotations

import sys

from .errors import BitmapArithmeticError

SIZE_MAX = sys.maxsize  # largest index a buffer can have
UINT32_MAX = 0xFFFFFFFF
INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1


def checked_add(a: int, b: int, limit: int = SIZE_MAX) -> int:
    if a < 0 or b < 0 or a > limit - b:
        raise BitmapArithmeticError(f"{a} + {b} exceeds {limit}")
    return a + b


def checked_mul(a: int, b: int, limit: int = SIZE_MAX) -> int:
    if a < 0 or b < 0:
        raise BitmapArithmeticError(f"{a} * {b} has a negative operand")
    if a and b > limit // a:
        raise BitmapArithmeticError(f"{a} * {b} exceeds {limit}")
    return a * b


def safe_narrow(value: int, limit: int = SIZE_MAX) -> int:
    """Check that an unsigned 32-bit field fits the native index type."""

    if value < 0 or value > UINT32_MAX or value > limit:
        raise BitmapArithmeticError(f"{value} does not fit a buffer index")
    return value


def safe_negate(value: int) -> int:
    """Negate a signed 32-bit value, refusing the one that has no negation."""

    if value < INT32_MIN or value > INT32_MAX:
        raise BitmapArithmeticError(f"{value} is not a 32-bit signed value")
    if value == INT32_MIN:
        raise BitmapArithmeticError(f"{value} cannot be negated")
    return -value


def is_power_of_two(value: int) -> bool:
    """Return whether exactly one bit is set in the magnitude of ``value``.

    ``INT32_MIN`` qualifies: its magnitude is 2**31 even though the value
    itself cannot be negated in 32 bits. Zero does not.
    """

    magnitude = abs(value)
    return magnitude != 0 and magnitude & (magnitude - 1) == 0


def line_length(width: int, bits: int, limit: int = SIZE_MAX) -> int:
    """Return the byte length of a scan line padded to a 32-bit boundary.

    For instance 3 pixels of 24-bit data take 9 bytes, padded to 12.
    """

    line_bits = checked_mul(width, bits, limit)
    padded = checked_add(line_bits, 31, limit) & ~31
    length = padded // 8
    if length == 0:
        raise BitmapArithmeticError(f"empty scan line for width {width}")
    return length
