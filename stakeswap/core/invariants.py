"""Invariant checkers for pool and staking state.

Each function returns True when the invariant holds. ``check_pool()`` and
``check_staking()`` return the list of violated invariant IDs (empty = all pass).
Transitions run these on every post-state before it may be committed.
"""

from __future__ import annotations

from typing import Callable

from ..kernels.reward_math import REWARD_PRECISION
from ..state.pools import PoolState
from ..state.staking import StakingState
from .types import MAX_AMOUNT


# -- Pool --------------------------------------------------------------------

def inv_canonical_order(p: PoolState) -> bool:
    return p.token_a < p.token_b


def inv_reserves_zero_together(p: PoolState) -> bool:
    return (p.reserve_a == 0) == (p.reserve_b == 0)


def inv_shares_zero_iff_reserves_zero(p: PoolState) -> bool:
    return (p.total_shares == 0) == (p.reserve_a == 0 and p.reserve_b == 0)


def inv_shares_sum(p: PoolState) -> bool:
    return sum(p.shares.values()) == p.total_shares


def inv_share_entries_positive(p: PoolState) -> bool:
    return all(amount > 0 for amount in p.shares.values())


def inv_reserves_bounded(p: PoolState) -> bool:
    return p.reserve_a <= MAX_AMOUNT and p.reserve_b <= MAX_AMOUNT


def inv_seed_only_when_empty(p: PoolState) -> bool:
    return p.seed_price is None or p.total_shares == 0


POOL_INVARIANTS: dict[str, Callable[[PoolState], bool]] = {
    "inv_canonical_order": inv_canonical_order,
    "inv_reserves_zero_together": inv_reserves_zero_together,
    "inv_shares_zero_iff_reserves_zero": inv_shares_zero_iff_reserves_zero,
    "inv_shares_sum": inv_shares_sum,
    "inv_share_entries_positive": inv_share_entries_positive,
    "inv_reserves_bounded": inv_reserves_bounded,
    "inv_seed_only_when_empty": inv_seed_only_when_empty,
}


# -- Staking -----------------------------------------------------------------

def inv_stake_sum(s: StakingState) -> bool:
    return sum(a.staked for a in s.accounts.values()) == s.global_state.total_staked


def inv_snapshots_not_ahead(s: StakingState) -> bool:
    stored = s.global_state.reward_per_token_stored
    return all(a.reward_per_token_paid <= stored for a in s.accounts.values())


def inv_stake_bounded(s: StakingState) -> bool:
    return s.global_state.total_staked <= MAX_AMOUNT


def inv_dust_below_unit(s: StakingState) -> bool:
    return all(a.reward_dust < REWARD_PRECISION for a in s.accounts.values())


def inv_no_remainder_without_stake(s: StakingState) -> bool:
    g = s.global_state
    return g.total_staked > 0 or g.reward_remainder == 0


STAKING_INVARIANTS: dict[str, Callable[[StakingState], bool]] = {
    "inv_stake_sum": inv_stake_sum,
    "inv_snapshots_not_ahead": inv_snapshots_not_ahead,
    "inv_stake_bounded": inv_stake_bounded,
    "inv_dust_below_unit": inv_dust_below_unit,
    "inv_no_remainder_without_stake": inv_no_remainder_without_stake,
}


def check_pool(pool: PoolState) -> list[str]:
    """Return list of violated pool invariant IDs (empty = all pass)."""
    return [inv_id for inv_id, check_fn in POOL_INVARIANTS.items() if not check_fn(pool)]


def check_staking(state: StakingState) -> list[str]:
    """Return list of violated staking invariant IDs (empty = all pass)."""
    return [inv_id for inv_id, check_fn in STAKING_INVARIANTS.items() if not check_fn(state)]
