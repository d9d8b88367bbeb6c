"""
Reward-per-token accumulator kernel.

The accumulator is kept at `REWARD_PRECISION` scale so small stakes against a
large total still accrue. An account's owed reward is O(1):

    earned = rewards_accrued + (reward_dust + staked * (reward_per_token - reward_per_token_paid)) / REWARD_PRECISION

Nothing is rounded away:

* the remainder of each accumulator division is carried (in reward units
  scaled by REWARD_PRECISION) and folded into the next advance;
* an account that holds the whole stake also collects the carried remainder
  when it settles;
* the sub-unit part of a settlement stays with the account as ``reward_dust``.

So reward emitted while something is staked is either credited to an account
or still held in the carry; it is never lost.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .fixed_point import checked_add, checked_mul, checked_sub, require_uint


REWARD_PRECISION = 10**18


def advance(
    *,
    reward_per_token_stored: int,
    remainder: int,
    reward_rate: int,
    elapsed: int,
    total_staked: int,
) -> Tuple[int, int]:
    """
    Advance the accumulator by *elapsed* seconds.

    Returns ``(reward_per_token, remainder)``. With nothing staked the
    accumulator and the carried remainder are left unchanged.
    """
    require_uint("reward_rate", reward_rate)
    require_uint("elapsed", elapsed)
    require_uint("total_staked", total_staked)
    require_uint("remainder", remainder)
    if total_staked == 0:
        return reward_per_token_stored, remainder
    emitted = checked_mul(checked_mul(reward_rate, elapsed), REWARD_PRECISION)
    delta, remainder = divmod(checked_add(emitted, remainder), total_staked)
    return checked_add(reward_per_token_stored, delta), remainder


def accumulator_at(
    *,
    reward_per_token_stored: int,
    reward_rate: int,
    last_update_time: int,
    now: int,
    total_staked: int,
    remainder: int = 0,
) -> Tuple[int, int]:
    if now < last_update_time:
        raise ValueError(f"time went backwards: now={now} < last_update_time={last_update_time}")
    return advance(
        reward_per_token_stored=reward_per_token_stored,
        remainder=remainder,
        reward_rate=reward_rate,
        elapsed=now - last_update_time,
        total_staked=total_staked,
    )


def pending_scaled(*, staked: int, reward_per_token: int, reward_per_token_paid: int) -> int:
    """Reward owed since the account's last snapshot, still at REWARD_PRECISION scale."""
    delta = checked_sub(reward_per_token, reward_per_token_paid)
    return checked_mul(require_uint("staked", staked), delta)


@dataclass(frozen=True)
class Settlement:
    reward: int
    dust: int
    remainder: int


def settle(
    *,
    staked: int,
    total_staked: int,
    reward_per_token: int,
    reward_per_token_paid: int,
    dust: int,
    remainder: int,
) -> Settlement:
    """
    Split what an account is owed into whole reward units and dust.

    ``remainder`` is the accumulator carry; the sole staker takes all of it.
    """
    scaled = checked_add(
        dust,
        pending_scaled(staked=staked, reward_per_token=reward_per_token, reward_per_token_paid=reward_per_token_paid),
    )
    if staked > 0 and staked == total_staked:
        scaled = checked_add(scaled, remainder)
        remainder = 0
    reward, dust = divmod(scaled, REWARD_PRECISION)
    return Settlement(reward=reward, dust=dust, remainder=remainder)
