"""
Staking ledger transitions (reward-per-token accumulator).

Every mutating transition runs the same three steps in this order:

1. update the global accumulator up to ``now`` (skipped when nothing is staked);
2. settle the caller's pending reward into ``rewards_accrued`` (sub-unit
   dust stays on the account) and snapshot ``reward_per_token_paid``;
3. apply the operation's own change to stake / rewards.

The functions are pure: they return a `StepResult` with the next
`StakingState`; token movement is the ledger shell's job.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional, Tuple

from ..kernels import reward_math
from ..kernels.fixed_point import FixedPointOverflow
from ..state.staking import StakingAccount, StakingGlobalState, StakingState
from ..state.types import AccountId, Amount, TokenId
from .errors import ErrorKind
from .events import PausedChanged, RewardPaid, RewardRateUpdated, Staked, Withdrawn
from .invariants import check_staking
from .types import MAX_AMOUNT, StepResult, is_amount, reject


def initial_state(
    staking_token: TokenId,
    reward_token: TokenId,
    operator: AccountId,
    *,
    reward_rate: int = 0,
    now: int = 0,
) -> StakingState:
    return StakingState(
        global_state=StakingGlobalState(
            staking_token=staking_token,
            reward_token=reward_token,
            operator=operator,
            reward_rate=reward_rate,
            last_update_time=now,
        ),
    )


# -- Views -------------------------------------------------------------------
#
# Views read the state as of max(now, last_update_time): the accumulator
# never runs backwards, so an earlier *now* sees the last booked value.

def _accumulator(state: StakingState, now: int) -> Tuple[int, int]:
    g = state.global_state
    return reward_math.accumulator_at(
        reward_per_token_stored=g.reward_per_token_stored,
        remainder=g.reward_remainder,
        reward_rate=g.reward_rate,
        last_update_time=g.last_update_time,
        now=max(now, g.last_update_time),
        total_staked=g.total_staked,
    )


def _settlement(state: StakingState, acct: StakingAccount, rpt: int, remainder: int) -> reward_math.Settlement:
    return reward_math.settle(
        staked=acct.staked,
        total_staked=state.global_state.total_staked,
        reward_per_token=rpt,
        reward_per_token_paid=acct.reward_per_token_paid,
        dust=acct.reward_dust,
        remainder=remainder,
    )


def reward_per_token(state: StakingState, now: int) -> int:
    """Accumulator value as of *now* (REWARD_PRECISION-scaled)."""
    rpt, _ = _accumulator(state, now)
    return rpt


def earned(state: StakingState, account: AccountId, now: int) -> Amount:
    """Total reward owed to *account* as of *now* (accrued + pending)."""
    acct = state.account(account)
    rpt, remainder = _accumulator(state, now)
    return acct.rewards_accrued + _settlement(state, acct, rpt, remainder).reward


# -- Internal steps ----------------------------------------------------------

def _update_global(state: StakingState, now: int) -> StakingState:
    rpt, remainder = _accumulator(state, now)
    g = replace(state.global_state, reward_per_token_stored=rpt, reward_remainder=remainder, last_update_time=now)
    return replace(state, global_state=g)


def _settle(state: StakingState, account: AccountId) -> StakingState:
    g = state.global_state
    acct = state.account(account)
    s = _settlement(state, acct, g.reward_per_token_stored, g.reward_remainder)
    settled = replace(
        acct,
        rewards_accrued=acct.rewards_accrued + s.reward,
        reward_dust=s.dust,
        reward_per_token_paid=g.reward_per_token_stored,
    )
    state = replace(state, global_state=replace(g, reward_remainder=s.remainder))
    return _with_account(state, account, settled)


def _with_account(state: StakingState, account: AccountId, record: StakingAccount) -> StakingState:
    accounts: Dict[AccountId, StakingAccount] = dict(state.accounts)
    if record.staked == 0 and record.rewards_accrued == 0 and record.reward_dust == 0:
        accounts.pop(account, None)
    else:
        accounts[account] = record
    return replace(state, accounts=accounts)


def _update_and_settle(state: StakingState, account: AccountId, now: int) -> StakingState:
    return _settle(_update_global(state, now), account)


def _check_time(state: StakingState, now: int) -> Optional[StepResult]:
    if not isinstance(now, int) or isinstance(now, bool) or now < 0:
        return reject(ErrorKind.INVALID_TIMESTAMP, f"invalid timestamp: {now!r}")
    last = state.global_state.last_update_time
    if now < last:
        return reject(ErrorKind.INVALID_TIMESTAMP, f"now={now} < last_update_time={last}")
    return None


def _finish(new_state: StakingState, value, events) -> StepResult[StakingState]:
    violations = check_staking(new_state)
    if violations:
        return reject(ErrorKind.INVARIANT_VIOLATION, ",".join(violations))
    return StepResult(ok=True, state=new_state, value=value, events=tuple(events))


def _add_stake(state: StakingState, account: AccountId, amount: Amount) -> StakingState:
    g = state.global_state
    acct = state.account(account)
    state = _with_account(state, account, replace(acct, staked=acct.staked + amount))
    return replace(state, global_state=replace(g, total_staked=g.total_staked + amount))


# -- Transitions -------------------------------------------------------------

def stake(state: StakingState, account: AccountId, amount: Amount, now: int) -> StepResult[StakingState]:
    if state.global_state.paused:
        return reject(ErrorKind.PAUSED, "staking is paused")
    if not is_amount(amount):
        return reject(ErrorKind.INVALID_AMOUNT, f"stake amount must be in [1, MAX_AMOUNT]: {amount}")
    bad_time = _check_time(state, now)
    if bad_time is not None:
        return bad_time
    if state.global_state.total_staked + amount > MAX_AMOUNT:
        return reject(ErrorKind.OVERFLOW, "total_staked would exceed MAX_AMOUNT")

    try:
        settled = _update_and_settle(state, account, now)
    except FixedPointOverflow as exc:
        return reject(ErrorKind.OVERFLOW, str(exc))
    new_state = _add_stake(settled, account, amount)
    return _finish(new_state, amount, [Staked(account=account, amount=amount, timestamp=now)])


def withdraw(state: StakingState, account: AccountId, amount: Amount, now: int) -> StepResult[StakingState]:
    if not is_amount(amount):
        return reject(ErrorKind.INVALID_AMOUNT, f"withdraw amount must be in [1, MAX_AMOUNT]: {amount}")
    bad_time = _check_time(state, now)
    if bad_time is not None:
        return bad_time
    staked = state.account(account).staked
    if amount > staked:
        return reject(ErrorKind.INSUFFICIENT_STAKE, f"requested {amount} > staked {staked}")

    try:
        settled = _update_and_settle(state, account, now)
    except FixedPointOverflow as exc:
        return reject(ErrorKind.OVERFLOW, str(exc))
    g = settled.global_state
    acct = settled.account(account)
    new_state = _with_account(settled, account, replace(acct, staked=acct.staked - amount))
    new_state = replace(new_state, global_state=replace(g, total_staked=g.total_staked - amount))
    return _finish(new_state, amount, [Withdrawn(account=account, amount=amount, timestamp=now)])


def get_reward(state: StakingState, account: AccountId, now: int) -> StepResult[StakingState]:
    """
    Settle and pay out everything owed. ``value`` is the amount to transfer;
    zero owed is a successful no-op without events.
    """
    bad_time = _check_time(state, now)
    if bad_time is not None:
        return bad_time
    try:
        settled = _update_and_settle(state, account, now)
    except FixedPointOverflow as exc:
        return reject(ErrorKind.OVERFLOW, str(exc))

    acct = settled.account(account)
    reward = acct.rewards_accrued
    if reward == 0:
        return StepResult(ok=True, state=settled, value=0)
    new_state = _with_account(settled, account, replace(acct, rewards_accrued=0))
    return _finish(new_state, reward, [RewardPaid(account=account, amount=reward, timestamp=now)])


def compound_rewards(state: StakingState, account: AccountId, now: int) -> StepResult[StakingState]:
    """Settle and re-stake the owed reward instead of paying it out."""
    if not state.global_state.single_token:
        return reject(
            ErrorKind.UNSUPPORTED_OPERATION,
            "compounding requires staking_token == reward_token",
        )
    if state.global_state.paused:
        return reject(ErrorKind.PAUSED, "staking is paused")
    bad_time = _check_time(state, now)
    if bad_time is not None:
        return bad_time
    try:
        settled = _update_and_settle(state, account, now)
    except FixedPointOverflow as exc:
        return reject(ErrorKind.OVERFLOW, str(exc))

    acct = settled.account(account)
    reward = acct.rewards_accrued
    if reward == 0:
        return StepResult(ok=True, state=settled, value=0)
    if settled.global_state.total_staked + reward > MAX_AMOUNT:
        return reject(ErrorKind.OVERFLOW, "total_staked would exceed MAX_AMOUNT")

    cleared = _with_account(settled, account, replace(acct, rewards_accrued=0))
    new_state = _add_stake(cleared, account, reward)
    events = [
        RewardPaid(account=account, amount=reward, timestamp=now),
        Staked(account=account, amount=reward, timestamp=now),
    ]
    return _finish(new_state, reward, events)


def set_reward_rate(state: StakingState, caller: AccountId, new_rate: int, now: int) -> StepResult[StakingState]:
    """Operator only. Accrual up to *now* is booked at the old rate first."""
    g = state.global_state
    if caller != g.operator:
        return reject(ErrorKind.UNAUTHORIZED, f"{caller} is not the operator")
    if not is_amount(new_rate, allow_zero=True):
        return reject(ErrorKind.INVALID_AMOUNT, f"reward rate must be in [0, MAX_AMOUNT]: {new_rate}")
    bad_time = _check_time(state, now)
    if bad_time is not None:
        return bad_time
    try:
        updated = _update_global(state, now)
    except FixedPointOverflow as exc:
        return reject(ErrorKind.OVERFLOW, str(exc))
    new_state = replace(updated, global_state=replace(updated.global_state, reward_rate=new_rate))
    event = RewardRateUpdated(old_rate=g.reward_rate, new_rate=new_rate, timestamp=now)
    return _finish(new_state, new_rate, [event])


def set_paused(state: StakingState, caller: AccountId, paused: bool, now: int) -> StepResult[StakingState]:
    """Operator only. Pausing blocks new stake; withdrawals and claims stay open."""
    g = state.global_state
    if caller != g.operator:
        return reject(ErrorKind.UNAUTHORIZED, f"{caller} is not the operator")
    new_state = replace(state, global_state=replace(g, paused=bool(paused)))
    return _finish(new_state, bool(paused), [PausedChanged(operator=caller, paused=bool(paused), timestamp=now)])
