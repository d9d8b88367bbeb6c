# [TESTER] v1

from __future__ import annotations

import pytest

from stakeswap.core.errors import ErrorKind
from stakeswap.core.oracle import PriceReading, is_fresh, seed_ratio, validate_reading


def test_is_fresh_window() -> None:
    r = PriceReading(value=100, timestamp=1000)
    assert is_fresh(r, 1060, 60)
    assert not is_fresh(r, 1061, 60)
    # Readings from the future are never fresh.
    assert not is_fresh(r, 999, 60)


def test_is_fresh_rejects_bad_config() -> None:
    with pytest.raises(ValueError):
        is_fresh(PriceReading(1, 0), 0, 0)
    with pytest.raises(ValueError):
        is_fresh(PriceReading(1, 0), -1, 10)


@pytest.mark.parametrize("value", [0, -5, 1.5, True, "100"])
def test_unusable_values(value) -> None:
    assert validate_reading(PriceReading(value=value, timestamp=0), 0) == ErrorKind.INVALID_PRICE


def test_staleness_only_checked_when_configured() -> None:
    old = PriceReading(value=100, timestamp=0)
    assert validate_reading(old, 10**9) is None
    assert validate_reading(old, 10**9, 3600) == ErrorKind.INVALID_PRICE


def test_seed_ratio_is_reduced_and_oriented() -> None:
    # 1 token_a is worth price_a / price_b token_b.
    assert seed_ratio(2 * 10**8, 10**8) == (2, 1)
    assert seed_ratio(3000, 2000) == (3, 2)
    with pytest.raises(ValueError):
        seed_ratio(0, 1)
