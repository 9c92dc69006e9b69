"""
Checked fixed-width integer arithmetic.

Python ints never wrap, so the ledger enforces the storage widths itself:
amounts are signed 128-bit, ids / timestamps / counters are unsigned 64-bit,
member counts are unsigned 32-bit. Results outside range raise instead of wrapping.
"""

from __future__ import annotations

from nestera.core.exceptions import Overflow, Underflow

I128_MIN = -(2**127)
I128_MAX = 2**127 - 1
U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1


def is_i128(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and I128_MIN <= value <= I128_MAX


def is_u64(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U64_MAX


def is_u32(value: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U32_MAX


def checked_add_i128(a: int, b: int) -> int:
    """a + b within i128; Overflow above I128_MAX, Underflow below I128_MIN."""
    result = a + b
    if result > I128_MAX:
        raise Overflow(f"i128 addition overflow: {a} + {b}")
    if result < I128_MIN:
        raise Underflow(f"i128 addition underflow: {a} + {b}")
    return result


def checked_sub_i128(a: int, b: int) -> int:
    """a - b within i128."""
    result = a - b
    if result > I128_MAX:
        raise Overflow(f"i128 subtraction overflow: {a} - {b}")
    if result < I128_MIN:
        raise Underflow(f"i128 subtraction underflow: {a} - {b}")
    return result


def checked_add_u64(a: int, b: int) -> int | None:
    """a + b within u64, or None on wraparound."""
    result = a + b
    if result > U64_MAX:
        return None
    return result


def checked_increment_u64(value: int) -> int:
    """Counter increment; Overflow once the u64 space is exhausted."""
    if value >= U64_MAX:
        raise Overflow("u64 counter exhausted")
    return value + 1
