# [TESTER] v1

from __future__ import annotations

import pytest

from stakeswap.state.tokens import FixedPriceFeed, InMemoryToken, PriceFeed, Token


def test_reference_collaborators_satisfy_protocols() -> None:
    assert isinstance(InMemoryToken("TKA"), Token)
    assert isinstance(FixedPriceFeed(1), PriceFeed)


def test_transfer_moves_balance_and_fails_cleanly() -> None:
    t = InMemoryToken("TKA")
    t.mint("alice", 100)
    assert t.transfer("alice", "bob", 40)
    assert (t.balance_of("alice"), t.balance_of("bob")) == (60, 40)

    assert not t.transfer("alice", "bob", 61)
    assert not t.transfer("alice", "bob", -1)
    assert (t.balance_of("alice"), t.balance_of("bob")) == (60, 40)
    assert t.total_supply() == 100


def test_transfer_from_consumes_allowance() -> None:
    t = InMemoryToken("TKA")
    t.mint("alice", 100)
    assert t.approve("alice", "router", 50)
    assert t.transfer_from("router", "alice", "router", 30)
    assert t.allowance("alice", "router") == 20
    assert t.balance_of("router") == 30

    assert not t.transfer_from("router", "alice", "router", 21)
    assert t.allowance("alice", "router") == 20


def test_transfer_from_requires_balance_too() -> None:
    t = InMemoryToken("TKA")
    t.mint("alice", 5)
    t.approve("alice", "router", 50)
    assert not t.transfer_from("router", "alice", "router", 6)
    assert t.balance_of("alice") == 5
    assert t.allowance("alice", "router") == 50


def test_zero_balances_are_dropped() -> None:
    t = InMemoryToken("TKA")
    t.mint("alice", 5)
    t.transfer("alice", "bob", 5)
    assert t.balance_of("alice") == 0
    assert repr(t) == "InMemoryToken('TKA', 1 holders)"


def test_token_validation() -> None:
    with pytest.raises(ValueError):
        InMemoryToken("")
    with pytest.raises(ValueError):
        InMemoryToken("TKA").mint("alice", -1)


def test_fixed_price_feed() -> None:
    feed = FixedPriceFeed(100, timestamp=5)
    assert feed.latest_price() == (100, 5)
    feed.set_price(120, 9)
    assert feed.latest_price() == (120, 9)
