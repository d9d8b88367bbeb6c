"""`core`: pure pool and staking transitions.

- deterministic, integer-only transitions,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks on every post-state.

The integration shells own the live state and the token side effects.
"""

from .errors import ErrorKind, ReentrantCallError, StakeSwapError
from .events import (
    Event,
    LiquidityAdded,
    LiquidityRemoved,
    PausedChanged,
    PoolInitialized,
    RewardPaid,
    RewardRateUpdated,
    Staked,
    SwapExecuted,
    Withdrawn,
)
from .guard import ReentrancyGuard
from .invariants import check_pool, check_staking
from .types import (
    MAX_AMOUNT,
    AddLiquidityOutcome,
    RemoveLiquidityOutcome,
    StepResult,
    SwapOutcome,
    TxResult,
)

__all__ = [
    "ErrorKind",
    "ReentrantCallError",
    "StakeSwapError",
    "Event",
    "LiquidityAdded",
    "LiquidityRemoved",
    "PausedChanged",
    "PoolInitialized",
    "RewardPaid",
    "RewardRateUpdated",
    "Staked",
    "SwapExecuted",
    "Withdrawn",
    "ReentrancyGuard",
    "check_pool",
    "check_staking",
    "MAX_AMOUNT",
    "AddLiquidityOutcome",
    "RemoveLiquidityOutcome",
    "StepResult",
    "SwapOutcome",
    "TxResult",
]
