# [TESTER] v1

from __future__ import annotations

import pytest

from stakeswap.kernels.reward_math import (
    REWARD_PRECISION,
    accumulator_at,
    advance,
    pending_scaled,
    settle,
)


def test_accumulator_is_flat_when_nothing_is_staked() -> None:
    assert advance(reward_per_token_stored=7, remainder=0, reward_rate=10, elapsed=3600, total_staked=0) == (7, 0)
    assert advance(reward_per_token_stored=7, remainder=0, reward_rate=0, elapsed=3600, total_staked=100) == (7, 0)
    assert advance(reward_per_token_stored=7, remainder=0, reward_rate=10, elapsed=0, total_staked=100) == (7, 0)


def test_single_staker_hour_at_rate_one() -> None:
    rpt, remainder = accumulator_at(
        reward_per_token_stored=0,
        reward_rate=1,
        last_update_time=0,
        now=3600,
        total_staked=100,
    )
    assert (rpt, remainder) == (36 * REWARD_PRECISION, 0)
    s = settle(staked=100, total_staked=100, reward_per_token=rpt, reward_per_token_paid=0, dust=0, remainder=0)
    assert (s.reward, s.dust) == (3600, 0)


def test_division_remainder_is_carried() -> None:
    rpt, remainder = advance(reward_per_token_stored=0, remainder=0, reward_rate=1, elapsed=10, total_staked=60)
    assert rpt == 166666666666666666
    assert remainder == 40
    # The carry is folded into the next advance.
    rpt, remainder = advance(reward_per_token_stored=rpt, remainder=remainder, reward_rate=0, elapsed=0, total_staked=20)
    assert (rpt, remainder) == (166666666666666668, 0)


def test_sole_staker_collects_the_carry() -> None:
    rpt, remainder = advance(reward_per_token_stored=0, remainder=0, reward_rate=1, elapsed=10, total_staked=60)
    s = settle(staked=60, total_staked=60, reward_per_token=rpt, reward_per_token_paid=0, dust=0, remainder=remainder)
    assert (s.reward, s.dust, s.remainder) == (10, 0, 0)


def test_partial_staker_keeps_dust_and_leaves_the_carry() -> None:
    rpt, remainder = advance(reward_per_token_stored=0, remainder=0, reward_rate=1, elapsed=1, total_staked=3)
    assert remainder == 1
    s = settle(staked=2, total_staked=3, reward_per_token=rpt, reward_per_token_paid=0, dust=0, remainder=remainder)
    assert (s.reward, s.dust, s.remainder) == (0, 666666666666666666, 1)
    # Dust carried from earlier settlements completes a whole unit.
    s = settle(staked=2, total_staked=3, reward_per_token=rpt, reward_per_token_paid=0, dust=s.dust, remainder=1)
    assert (s.reward, s.dust) == (1, 333333333333333332)


def test_small_stake_against_large_total_still_accrues() -> None:
    rpt, _ = advance(reward_per_token_stored=0, remainder=0, reward_rate=1, elapsed=1, total_staked=10**12)
    assert rpt == REWARD_PRECISION // 10**12
    s = settle(staked=10**6, total_staked=10**12, reward_per_token=rpt * 10**6, reward_per_token_paid=0, dust=0, remainder=0)
    assert s.reward == 1


def test_time_going_backwards_is_rejected() -> None:
    with pytest.raises(ValueError, match="backwards"):
        accumulator_at(
            reward_per_token_stored=0,
            reward_rate=1,
            last_update_time=10,
            now=9,
            total_staked=1,
        )


def test_pending_is_relative_to_snapshot() -> None:
    rpt = 5 * REWARD_PRECISION
    assert pending_scaled(staked=10, reward_per_token=rpt, reward_per_token_paid=rpt) == 0
    assert pending_scaled(staked=10, reward_per_token=rpt, reward_per_token_paid=2 * REWARD_PRECISION) == 30 * REWARD_PRECISION
