# [TESTER] v1

from __future__ import annotations

import math

import pytest

from stakeswap.kernels.fixed_point import (
    UINT256_MAX,
    FixedPointOverflow,
    Rounding,
    ceil_div,
    checked_add,
    checked_mul,
    checked_sub,
    isqrt,
    mul_div,
    require_uint,
    scale_ratio,
)


def test_require_uint_bounds() -> None:
    assert require_uint("x", 0) == 0
    assert require_uint("x", UINT256_MAX) == UINT256_MAX
    with pytest.raises(FixedPointOverflow):
        require_uint("x", -1)
    with pytest.raises(FixedPointOverflow):
        require_uint("x", UINT256_MAX + 1)


def test_require_uint_rejects_bool_and_float() -> None:
    with pytest.raises(TypeError):
        require_uint("x", True)
    with pytest.raises(TypeError):
        require_uint("x", 1.0)  # type: ignore[arg-type]


def test_checked_arithmetic_overflow_and_underflow() -> None:
    assert checked_add(2, 3) == 5
    assert checked_sub(5, 3) == 2
    assert checked_mul(1 << 128, (1 << 127)) == 1 << 255
    with pytest.raises(FixedPointOverflow):
        checked_add(UINT256_MAX, 1)
    with pytest.raises(FixedPointOverflow):
        checked_sub(3, 5)
    with pytest.raises(FixedPointOverflow):
        checked_mul(1 << 128, 1 << 128)


def test_mul_div_uses_full_width_intermediate() -> None:
    # a * b overflows uint256 but the quotient fits.
    a = 1 << 200
    b = 1 << 200
    assert mul_div(a, b, 1 << 150) == 1 << 250


def test_mul_div_rounding_directions() -> None:
    assert mul_div(7, 3, 2) == 10
    assert mul_div(7, 3, 2, Rounding.CEIL) == 11
    assert mul_div(6, 2, 3, Rounding.CEIL) == 4


def test_mul_div_result_overflow_and_zero_denominator() -> None:
    with pytest.raises(FixedPointOverflow):
        mul_div(UINT256_MAX, 2, 1)
    with pytest.raises(ZeroDivisionError):
        mul_div(1, 1, 0)


def test_ceil_div() -> None:
    assert ceil_div(0, 5) == 0
    assert ceil_div(10, 5) == 2
    assert ceil_div(11, 5) == 3


def test_isqrt_is_exact_for_large_values() -> None:
    # Float sqrt loses precision here.
    n = (1 << 70) + 12345
    assert isqrt(n * n) == n
    assert isqrt(n * n - 1) == n - 1
    assert isqrt(UINT256_MAX * UINT256_MAX) == UINT256_MAX
    assert isqrt(10**6) == 1000 == math.isqrt(10**6)


def test_isqrt_rejects_negative() -> None:
    with pytest.raises(FixedPointOverflow):
        isqrt(-1)


def test_scale_ratio() -> None:
    assert scale_ratio(100, 2, 3) == 66
    assert scale_ratio(100, 2, 3, Rounding.CEIL) == 67
