from __future__ import annotations

import pytest

from stakeswap.integration.clock import ManualClock
from stakeswap.integration.config import EngineConfig
from stakeswap.integration.ledger import StakingLedger
from stakeswap.integration.router import DEXRouter
from stakeswap.state.tokens import InMemoryToken

START = 1_000_000
ALICE = "alice"
BOB = "bob"
OPERATOR = "operator"


def fund(token: InMemoryToken, account: str, spender: str, amount: int = 1_000_000) -> None:
    token.mint(account, amount)
    token.approve(account, spender, amount)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def tka() -> InMemoryToken:
    return InMemoryToken("TKA")


@pytest.fixture
def tkb() -> InMemoryToken:
    return InMemoryToken("TKB")


@pytest.fixture
def router(clock: ManualClock, tka: InMemoryToken, tkb: InMemoryToken) -> DEXRouter:
    r = DEXRouter(EngineConfig(operator=OPERATOR), clock=clock)
    for token in (tka, tkb):
        r.register_token(token)
        fund(token, ALICE, r.address)
        fund(token, BOB, r.address)
    return r


@pytest.fixture
def stk() -> InMemoryToken:
    return InMemoryToken("STK")


@pytest.fixture
def rwd() -> InMemoryToken:
    return InMemoryToken("RWD")


@pytest.fixture
def ledger(clock: ManualClock, stk: InMemoryToken, rwd: InMemoryToken) -> StakingLedger:
    led = StakingLedger(stk, rwd, EngineConfig(operator=OPERATOR), clock=clock)
    fund(stk, ALICE, led.address)
    fund(stk, BOB, led.address)
    rwd.mint(OPERATOR, 10_000_000)
    assert led.fund_rewards(OPERATOR, 10_000_000).ok
    return led
