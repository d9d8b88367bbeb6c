"""
Price-feed validation kernel.

This module is intentionally small and pure:
- The functional core decides whether a feed reading is usable.
- The imperative shell (router) is responsible for calling the feed and the clock.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import ErrorKind


@dataclass(frozen=True)
class PriceReading:
    """A single feed reading."""

    value: int
    timestamp: int


def is_fresh(reading: PriceReading, current_timestamp: int, max_age_seconds: int) -> bool:
    """Return True if the reading is within the max staleness window."""
    if current_timestamp < 0:
        raise ValueError(f"current_timestamp must be non-negative: {current_timestamp}")
    if max_age_seconds <= 0:
        raise ValueError(f"max_age_seconds must be positive: {max_age_seconds}")
    if reading.timestamp > current_timestamp:
        return False
    return (current_timestamp - reading.timestamp) <= max_age_seconds


def validate_reading(
    reading: PriceReading,
    current_timestamp: int,
    max_age_seconds: Optional[int] = None,
) -> Optional[ErrorKind]:
    """Return ``INVALID_PRICE`` for a non-positive, malformed or stale reading, else None."""
    if not isinstance(reading.value, int) or isinstance(reading.value, bool):
        return ErrorKind.INVALID_PRICE
    if reading.value <= 0:
        return ErrorKind.INVALID_PRICE
    if max_age_seconds is not None and not is_fresh(reading, current_timestamp, max_age_seconds):
        return ErrorKind.INVALID_PRICE
    return None


def seed_ratio(price_a: int, price_b: int) -> Tuple[int, int]:
    """
    Units of token_b per unit of token_a as a reduced ``(num, den)``.

    With both prices quoted in the same unit, 1 token_a is worth
    ``price_a / price_b`` token_b.
    """
    if price_a <= 0 or price_b <= 0:
        raise ValueError(f"prices must be positive: ({price_a}, {price_b})")
    g = math.gcd(price_a, price_b)
    return price_a // g, price_b // g
