"""
Overflow-checked fixed-point primitives.

Python ints never overflow, so the 256-bit unsigned domain of the ledger is
enforced explicitly: every helper rejects inputs or results outside
`[0, UINT256_MAX]`. Intermediate products in `mul_div` are computed at full
width before the single final division, which is where rounding happens.
"""

from __future__ import annotations

import math
from enum import Enum, unique


UINT256_MAX = (1 << 256) - 1


class FixedPointOverflow(ArithmeticError):
    """Raised when a value leaves the uint256 domain."""


@unique
class Rounding(Enum):
    FLOOR = "floor"
    CEIL = "ceil"


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_uint(name: str, value: int) -> int:
    """Validate that *value* is an int in the uint256 domain and return it."""
    _require_int(name, value)
    if value < 0:
        raise FixedPointOverflow(f"{name} underflows uint256: {value}")
    if value > UINT256_MAX:
        raise FixedPointOverflow(f"{name} overflows uint256")
    return value


def checked_add(a: int, b: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    return require_uint("a + b", a + b)


def checked_sub(a: int, b: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    return require_uint("a - b", a - b)


def checked_mul(a: int, b: int) -> int:
    require_uint("a", a)
    require_uint("b", b)
    return require_uint("a * b", a * b)


def ceil_div(numerator: int, denominator: int) -> int:
    require_uint("numerator", numerator)
    require_uint("denominator", denominator)
    if denominator == 0:
        raise ZeroDivisionError("denominator must be positive")
    return (numerator + denominator - 1) // denominator


def mul_div(a: int, b: int, denominator: int, rounding: Rounding = Rounding.FLOOR) -> int:
    """
    Compute `a * b / denominator` with a full-width intermediate.

    The product may exceed uint256; only the quotient must fit.
    """
    require_uint("a", a)
    require_uint("b", b)
    require_uint("denominator", denominator)
    if denominator == 0:
        raise ZeroDivisionError("denominator must be positive")

    product = a * b
    if rounding is Rounding.CEIL:
        result = (product + denominator - 1) // denominator
    else:
        result = product // denominator
    return require_uint("mul_div result", result)


def isqrt(value: int) -> int:
    """
    Exact floor square root (no float precision loss).

    Accepts full-width products of two uint256 values (e.g. `amount_a * amount_b`);
    the root of such a product always fits in uint256.
    """
    _require_int("value", value)
    if value < 0:
        raise FixedPointOverflow(f"value underflows uint256: {value}")
    if value > UINT256_MAX * UINT256_MAX:
        raise FixedPointOverflow("value exceeds a full-width uint256 product")
    return math.isqrt(value)


def scale_ratio(amount: int, num: int, den: int, rounding: Rounding = Rounding.FLOOR) -> int:
    """Scale *amount* by the ratio `num / den`."""
    if den == 0:
        raise ZeroDivisionError("ratio denominator must be positive")
    return mul_div(amount, num, den, rounding)
