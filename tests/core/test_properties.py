"""Property tests for the pool and staking transitions.

Uses Hypothesis to fuzz deposits, swaps and stake sequences and checks the
conservation / monotonicity properties after every committed step.
"""

from __future__ import annotations

import importlib.util
from fractions import Fraction

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from stakeswap.core import pool as pool_core
from stakeswap.core import staking as staking_core
from stakeswap.core.invariants import check_pool, check_staking
from stakeswap.state.pools import empty_pool

amounts = st.integers(min_value=1, max_value=10**15)
fees = st.integers(min_value=0, max_value=1000)


@settings(max_examples=200, deadline=None)
@given(a=amounts, b=amounts, fee=fees, trades=st.lists(st.tuples(st.booleans(), amounts), min_size=1, max_size=8))
def test_swaps_never_decrease_k(a: int, b: int, fee: int, trades) -> None:
    r = pool_core.add_liquidity(empty_pool("TKA", "TKB", fee), "lp", a, b)
    assert r.ok
    pool = r.state
    for a_to_b, amount_in in trades:
        k_before = pool.get_constant_product()
        step = pool_core.swap(pool, "trader", "TKA" if a_to_b else "TKB", amount_in)
        if not step.ok:
            continue
        pool = step.state
        assert pool.get_constant_product() >= k_before
        assert pool.reserve_a > 0 and pool.reserve_b > 0
        assert check_pool(pool) == []


@settings(max_examples=200, deadline=None)
@given(seed_a=amounts, seed_b=amounts, a=amounts, b=amounts)
def test_add_then_remove_never_returns_more(seed_a: int, seed_b: int, a: int, b: int) -> None:
    pool = pool_core.add_liquidity(empty_pool("TKA", "TKB"), "lp", seed_a, seed_b).state
    added = pool_core.add_liquidity(pool, "lp2", a, b)
    if not added.ok:
        return
    removed = pool_core.remove_liquidity(added.state, "lp2", added.value.shares_minted)
    assert removed.ok
    assert removed.value.amount_a <= added.value.amount_a
    assert removed.value.amount_b <= added.value.amount_b
    assert removed.state.shares_of("lp2") == 0
    assert check_pool(removed.state) == []


@settings(max_examples=100, deadline=None)
@given(a=amounts, b=amounts)
def test_bootstrap_round_trip_is_exact(a: int, b: int) -> None:
    added = pool_core.add_liquidity(empty_pool("TKA", "TKB"), "lp", a, b)
    removed = pool_core.remove_liquidity(added.state, "lp", added.value.shares_minted)
    assert (removed.value.amount_a, removed.value.amount_b) == (a, b)
    assert removed.state.is_empty


@settings(max_examples=200, deadline=None)
@given(
    staked=st.integers(min_value=1, max_value=10**12),
    rate=st.integers(min_value=0, max_value=10**9),
    dt=st.integers(min_value=0, max_value=10**7),
)
def test_sole_staker_accrues_rate_times_time(staked: int, rate: int, dt: int) -> None:
    s = staking_core.initial_state("STK", "RWD", "op", reward_rate=rate)
    s = staking_core.stake(s, "alice", staked, 0).state
    assert staking_core.earned(s, "alice", dt) == rate * dt


_sole_ops = st.lists(
    st.tuples(
        st.sampled_from(["stake", "withdraw", "get_reward", "set_rate"]),
        st.integers(min_value=1, max_value=10**6),
        st.integers(min_value=0, max_value=1000),
    ),
    min_size=1,
    max_size=25,
)


@settings(max_examples=200, deadline=None)
@given(ops=_sole_ops, rate=st.integers(min_value=0, max_value=1000))
def test_sole_staker_matches_interval_sum(ops, rate: int) -> None:
    s = staking_core.initial_state("STK", "RWD", "op", reward_rate=rate)
    now = expected = paid = 0
    for op, amount, dt in ops:
        if s.global_state.total_staked > 0:
            expected += s.global_state.reward_rate * dt
        now += dt
        if op == "stake":
            r = staking_core.stake(s, "alice", amount, now)
        elif op == "withdraw":
            r = staking_core.withdraw(s, "alice", min(amount, s.account("alice").staked) or amount, now)
        elif op == "get_reward":
            r = staking_core.get_reward(s, "alice", now)
        else:
            r = staking_core.set_reward_rate(s, "op", amount % 1000, now)
        if not r.ok:
            continue
        if op == "get_reward":
            paid += r.value
        s = r.state
    assert paid + staking_core.earned(s, "alice", now) == expected


_multi_ops = st.lists(
    st.tuples(
        st.sampled_from(["stake", "withdraw", "get_reward"]),
        st.sampled_from(["alice", "bob", "carol"]),
        st.integers(min_value=1, max_value=10**6),
        st.integers(min_value=0, max_value=1000),
    ),
    min_size=1,
    max_size=25,
)


@settings(max_examples=200, deadline=None)
@given(ops=_multi_ops, rate=st.integers(min_value=1, max_value=1000))
def test_stakers_track_exact_interval_shares(ops, rate: int) -> None:
    names = ("alice", "bob", "carol")
    s = staking_core.initial_state("STK", "RWD", "op", reward_rate=rate)
    now = emitted = 0
    exact = {name: Fraction(0) for name in names}
    paid = dict.fromkeys(names, 0)
    for op, account, amount, dt in ops:
        total = s.global_state.total_staked
        if total > 0:
            emitted += rate * dt
            for name in names:
                exact[name] += Fraction(s.account(name).staked * rate * dt, total)
        now += dt
        if op == "stake":
            r = staking_core.stake(s, account, amount, now)
        elif op == "withdraw":
            r = staking_core.withdraw(s, account, min(amount, s.account(account).staked) or amount, now)
        else:
            r = staking_core.get_reward(s, account, now)
        if not r.ok:
            continue
        if op == "get_reward":
            paid[account] += r.value
        s = r.state

    got = {name: paid[name] + staking_core.earned(s, name, now) for name in names}
    slack = Fraction(1, 10**6)
    for name in names:
        # Each account is within one unit of its exact share.
        assert exact[name] - 1 - slack < got[name] <= exact[name] + slack
    # Nothing is created, and at most one unit per account is still held as dust.
    assert emitted - len(names) <= sum(got.values()) <= emitted


@settings(max_examples=100, deadline=None)
@given(
    staked=st.integers(min_value=1, max_value=10**9),
    rate=st.integers(min_value=1, max_value=10**6),
    times=st.lists(st.integers(min_value=0, max_value=10**5), min_size=2, max_size=10),
)
def test_earned_is_monotone_in_time(staked: int, rate: int, times) -> None:
    s = staking_core.initial_state("STK", "RWD", "op", reward_rate=rate)
    s = staking_core.stake(s, "alice", staked, 0).state
    observed = [staking_core.earned(s, "alice", t) for t in sorted(times)]
    assert observed == sorted(observed)


_ops = st.lists(
    st.tuples(
        st.sampled_from(["stake", "withdraw", "get_reward", "compound"]),
        st.sampled_from(["alice", "bob", "carol"]),
        st.integers(min_value=1, max_value=10**6),
        st.integers(min_value=0, max_value=1000),
    ),
    max_size=25,
)


@settings(max_examples=200, deadline=None)
@given(ops=_ops, rate=st.integers(min_value=0, max_value=1000))
def test_stake_conservation_under_random_sequences(ops, rate: int) -> None:
    s = staking_core.initial_state("STK", "STK", "op", reward_rate=rate)
    now = 0
    stored = 0
    for op, account, amount, dt in ops:
        now += dt
        if op == "stake":
            r = staking_core.stake(s, account, amount, now)
        elif op == "withdraw":
            r = staking_core.withdraw(s, account, amount, now)
        elif op == "get_reward":
            r = staking_core.get_reward(s, account, now)
        else:
            r = staking_core.compound_rewards(s, account, now)
        if not r.ok:
            continue
        s = r.state
        assert check_staking(s) == []
        assert sum(a.staked for a in s.accounts.values()) == s.global_state.total_staked
        assert s.global_state.reward_per_token_stored >= stored
        stored = s.global_state.reward_per_token_stored


@settings(max_examples=100, deadline=None)
@given(staked=st.integers(min_value=1, max_value=10**9), dt=st.integers(min_value=1, max_value=10**5))
def test_compound_moves_pending_into_stake(staked: int, dt: int) -> None:
    s = staking_core.initial_state("STK", "STK", "op", reward_rate=7)
    s = staking_core.stake(s, "alice", staked, 0).state
    pending = staking_core.earned(s, "alice", dt)
    r = staking_core.compound_rewards(s, "alice", dt)
    assert r.ok
    assert r.state.account("alice").staked == staked + pending
    assert staking_core.earned(r.state, "alice", dt) == 0
    assert staking_core.get_reward(r.state, "alice", dt).value == 0
