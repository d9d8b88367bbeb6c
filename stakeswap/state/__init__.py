"""
State management for StakeSwap pools and the staking ledger.
"""

from .pools import PoolState, canonical_pair, compute_pool_id, empty_pool
from .staking import StakingAccount, StakingGlobalState, StakingState
from .tokens import FixedPriceFeed, InMemoryToken, PriceFeed, Token

__all__ = [
    "PoolState",
    "canonical_pair",
    "compute_pool_id",
    "empty_pool",
    "StakingAccount",
    "StakingGlobalState",
    "StakingState",
    "FixedPriceFeed",
    "InMemoryToken",
    "PriceFeed",
    "Token",
]
