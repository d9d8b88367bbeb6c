"""Events emitted by committed operations.

All events are frozen dataclasses; ``name`` matches the event name consumed by
indexers and frontends.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Event:
    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, **asdict(self)}


@dataclass(frozen=True)
class PoolInitialized(Event):
    pool: str
    token_a: str
    token_b: str
    seed_price_num: int
    seed_price_den: int


@dataclass(frozen=True)
class LiquidityAdded(Event):
    pool: str
    provider: str
    amount_a: int
    amount_b: int
    shares_minted: int


@dataclass(frozen=True)
class LiquidityRemoved(Event):
    pool: str
    provider: str
    amount_a: int
    amount_b: int
    shares_burned: int


@dataclass(frozen=True)
class SwapExecuted(Event):
    pool: str
    trader: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


@dataclass(frozen=True)
class Staked(Event):
    account: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class Withdrawn(Event):
    account: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class RewardPaid(Event):
    account: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class RewardRateUpdated(Event):
    old_rate: int
    new_rate: int
    timestamp: int


@dataclass(frozen=True)
class PausedChanged(Event):
    operator: str
    paused: bool
    timestamp: int
