# [TESTER] v1

from __future__ import annotations

import pytest

from stakeswap.state.pools import DEFAULT_FEE_BPS, PoolState, canonical_pair, compute_pool_id, empty_pool


def test_canonical_pair_orders_tokens() -> None:
    assert canonical_pair("TKB", "TKA") == ("TKA", "TKB")
    assert canonical_pair("TKA", "TKB") == ("TKA", "TKB")


def test_canonical_pair_rejects_identical_and_non_string() -> None:
    with pytest.raises(ValueError, match="identical"):
        canonical_pair("TKA", "TKA")
    with pytest.raises(TypeError):
        canonical_pair("TKA", 1)  # type: ignore[arg-type]


def test_pool_id_is_deterministic_and_fee_sensitive() -> None:
    a = compute_pool_id("TKA", "TKB", 30)
    assert a == compute_pool_id("TKA", "TKB", 30)
    assert a != compute_pool_id("TKA", "TKB", 5)
    assert a.startswith("0x") and len(a) == 66
    with pytest.raises(ValueError, match="canonical"):
        compute_pool_id("TKB", "TKA", 30)


def test_empty_pool_is_canonical_regardless_of_argument_order() -> None:
    p = empty_pool("TKB", "TKA")
    assert (p.token_a, p.token_b) == ("TKA", "TKB")
    assert p.fee_bps == DEFAULT_FEE_BPS
    assert p.is_empty
    assert p.pool_id == compute_pool_id("TKA", "TKB", DEFAULT_FEE_BPS)


def test_pool_state_validation() -> None:
    pid = compute_pool_id("TKA", "TKB", 30)
    with pytest.raises(ValueError, match="canonical"):
        PoolState(pool_id=pid, token_a="TKB", token_b="TKA")
    with pytest.raises(ValueError, match="non-negative"):
        PoolState(pool_id=pid, token_a="TKA", token_b="TKB", reserve_a=-1)
    with pytest.raises(ValueError, match="fee_bps"):
        PoolState(pool_id=pid, token_a="TKA", token_b="TKB", fee_bps=10_000)
    with pytest.raises(ValueError, match="seed_price"):
        PoolState(pool_id=pid, token_a="TKA", token_b="TKB", seed_price=(0, 1))


def test_token_accessors() -> None:
    p = PoolState(
        pool_id=compute_pool_id("TKA", "TKB", 30),
        token_a="TKA",
        token_b="TKB",
        reserve_a=10,
        reserve_b=20,
        total_shares=14,
        shares={"lp": 14},
    )
    assert p.get_reserve("TKA") == 10
    assert p.get_reserve("TKB") == 20
    assert p.other_token("TKA") == "TKB"
    assert p.shares_of("lp") == 14
    assert p.shares_of("nobody") == 0
    assert p.get_constant_product() == 200
    with pytest.raises(ValueError, match="not in pool"):
        p.get_reserve("TKC")
    with pytest.raises(ValueError, match="not in pool"):
        p.other_token("TKC")


def test_share_map_is_a_read_only_copy() -> None:
    source = {"lp": 14}
    p = PoolState(
        pool_id=compute_pool_id("TKA", "TKB", 30),
        token_a="TKA",
        token_b="TKB",
        reserve_a=10,
        reserve_b=20,
        total_shares=14,
        shares=source,
    )
    source["mallory"] = 1
    assert p.shares == {"lp": 14}
    with pytest.raises(TypeError):
        p.shares["mallory"] = 1
