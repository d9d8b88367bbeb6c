"""Result and outcome types shared by the pool and staking transitions.

Units/conventions:
- amounts are non-negative ints bounded by ``MAX_AMOUNT``;
- ``*_a`` / ``*_b`` always refer to the pool's canonical token order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, Tuple, TypeVar

from .errors import ErrorKind, StakeSwapError
from .events import Event


# Bound on user-supplied amounts, reserves and stakes (uint112, as in
# Uniswap v2 reserves). Products of two bounded values times the 1e4 fee
# scale stay inside uint256.
MAX_AMOUNT: int = (1 << 112) - 1

S = TypeVar("S")


@dataclass(frozen=True)
class AddLiquidityOutcome:
    amount_a: int
    amount_b: int
    shares_minted: int


@dataclass(frozen=True)
class RemoveLiquidityOutcome:
    amount_a: int
    amount_b: int
    shares_burned: int


@dataclass(frozen=True)
class SwapOutcome:
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


@dataclass(frozen=True)
class StepResult(Generic[S]):
    """Result of a single pure transition."""

    ok: bool
    state: Optional[S] = None
    value: Any = None
    events: Tuple[Event, ...] = ()
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None


def reject(kind: ErrorKind, detail: Optional[str] = None) -> StepResult:
    return StepResult(ok=False, error=kind, detail=detail)


@dataclass(frozen=True)
class TxResult:
    """Result of a public engine operation (after commit or full revert)."""

    ok: bool
    value: Any = None
    events: Tuple[Event, ...] = ()
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @classmethod
    def failure(cls, kind: ErrorKind, detail: Optional[str] = None) -> "TxResult":
        return cls(ok=False, error=kind, detail=detail)

    def unwrap(self) -> Any:
        """Return ``value`` or raise ``StakeSwapError`` for a rejected operation."""
        if self.ok:
            return self.value
        assert self.error is not None
        raise StakeSwapError(self.error, self.detail)


def is_amount(value: Any, *, allow_zero: bool = False) -> bool:
    """True for a plain int in ``[1, MAX_AMOUNT]`` (``[0, MAX_AMOUNT]`` with *allow_zero*)."""
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    lo = 0 if allow_zero else 1
    return lo <= value <= MAX_AMOUNT
