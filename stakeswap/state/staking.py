"""
Staking ledger state: per-account records plus the global accumulator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .types import AccountId, Amount, TokenId


@dataclass(frozen=True)
class StakingAccount:
    """Per-account record. The zero record stands for an unknown account."""

    staked: Amount = 0
    reward_per_token_paid: int = 0
    rewards_accrued: Amount = 0
    reward_dust: int = 0

    def __post_init__(self) -> None:
        if self.staked < 0:
            raise ValueError("staked must be non-negative")
        if self.reward_per_token_paid < 0:
            raise ValueError("reward_per_token_paid must be non-negative")
        if self.rewards_accrued < 0:
            raise ValueError("rewards_accrued must be non-negative")
        if self.reward_dust < 0:
            raise ValueError("reward_dust must be non-negative")

    @property
    def is_staked(self) -> bool:
        return self.staked > 0


@dataclass(frozen=True)
class StakingGlobalState:
    """
    Global accumulator state. `reward_per_token_stored` is REWARD_PRECISION-scaled;
    `reward_remainder` is the division carry not yet folded into it.
    """

    staking_token: TokenId
    reward_token: TokenId
    operator: AccountId
    total_staked: Amount = 0
    reward_rate: int = 0
    reward_per_token_stored: int = 0
    reward_remainder: int = 0
    last_update_time: int = 0
    paused: bool = False

    def __post_init__(self) -> None:
        if self.total_staked < 0:
            raise ValueError("total_staked must be non-negative")
        if self.reward_rate < 0:
            raise ValueError("reward_rate must be non-negative")
        if self.reward_per_token_stored < 0:
            raise ValueError("reward_per_token_stored must be non-negative")
        if self.reward_remainder < 0:
            raise ValueError("reward_remainder must be non-negative")
        if self.last_update_time < 0:
            raise ValueError("last_update_time must be non-negative")

    @property
    def single_token(self) -> bool:
        return self.staking_token == self.reward_token


@dataclass(frozen=True)
class StakingState:
    global_state: StakingGlobalState
    accounts: Mapping[AccountId, StakingAccount] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "accounts", MappingProxyType(dict(self.accounts)))

    def account(self, account: AccountId) -> StakingAccount:
        return self.accounts.get(account, StakingAccount())
