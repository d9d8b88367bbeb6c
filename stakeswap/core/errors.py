"""Error taxonomy for pool, router and staking operations.

Expected failures travel as values (`ErrorKind` inside a result); the
exception types exist for callers that prefer ``unwrap()``.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional


@unique
class ErrorKind(Enum):
    INVALID_AMOUNT = "InvalidAmount"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INSUFFICIENT_ALLOWANCE = "InsufficientAllowance"
    INSUFFICIENT_SHARES = "InsufficientShares"
    INSUFFICIENT_STAKE = "InsufficientStake"
    SLIPPAGE_EXCEEDED = "SlippageExceeded"
    EXPIRED = "Expired"
    NO_LIQUIDITY = "NoLiquidity"
    NO_PRICE_FEED = "NoPriceFeed"
    INVALID_PRICE = "InvalidPrice"
    UNAUTHORIZED = "Unauthorized"
    INVALID_PAIR = "InvalidPair"
    INVALID_TIMESTAMP = "InvalidTimestamp"
    ALREADY_INITIALIZED = "AlreadyInitialized"
    TRANSFER_FAILED = "TransferFailed"
    REENTRANT_CALL = "ReentrantCall"
    PAUSED = "Paused"
    UNSUPPORTED_OPERATION = "UnsupportedOperation"
    OVERFLOW = "Overflow"
    INVARIANT_VIOLATION = "InvariantViolation"


class StakeSwapError(Exception):
    """Raised by ``unwrap()`` when an operation was rejected."""

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None) -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class ReentrantCallError(RuntimeError):
    """Raised when a guarded section is entered while already held."""
