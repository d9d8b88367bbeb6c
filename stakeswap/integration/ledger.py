"""
Staking ledger shell.

Owns the `StakingState`, the re-entrancy guard and the clock; delegates every
accounting step to `core.staking` and moves tokens only after the new state is
committed. Rewards are funded by transferring reward tokens to the ledger's
account; the unallocated part of that balance is the reward reserve.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..core import staking as staking_core
from ..core.errors import ErrorKind
from ..core.guard import ReentrancyGuard
from ..core.invariants import check_staking
from ..core.types import StepResult, TxResult, is_amount
from ..state.staking import StakingState
from ..state.tokens import Token
from ..state.types import AccountId, Amount
from . import transfers
from .config import EngineConfig
from .event_log import EventLog
from .clock import Clock, system_clock

logger = logging.getLogger(__name__)


class StakingLedger:
    def __init__(
        self,
        staking_token: Token,
        reward_token: Token,
        config: Optional[EngineConfig] = None,
        *,
        clock: Optional[Clock] = None,
        address: AccountId = "staking-ledger",
        events: Optional[EventLog] = None,
        state: Optional[StakingState] = None,
    ) -> None:
        for tok in (staking_token, reward_token):
            if not isinstance(tok, Token):
                raise TypeError(f"not a token collaborator: {tok!r}")
        self.config = config or EngineConfig()
        self.address = address
        self.events = events if events is not None else EventLog()
        self.staking_token = staking_token
        self.reward_token = reward_token
        self._clock: Clock = clock or system_clock
        self._guard = ReentrancyGuard()
        if state is None:
            state = staking_core.initial_state(
                staking_token.token_id,
                reward_token.token_id,
                self.config.operator,
                reward_rate=self.config.initial_reward_rate,
                now=self.now(),
            )
        else:
            g = state.global_state
            if (g.staking_token, g.reward_token) != (staking_token.token_id, reward_token.token_id):
                raise ValueError("state tokens do not match the ledger's tokens")
            violations = check_staking(state)
            if violations:
                raise ValueError(f"staking state violates {violations}")
        self._state = state

    def now(self) -> int:
        return int(self._clock())

    @property
    def state(self) -> StakingState:
        return self._state

    # -- Queries -------------------------------------------------------------

    def balance_of(self, account: AccountId) -> Amount:
        return self._state.account(account).staked

    def total_staked(self) -> Amount:
        return self._state.global_state.total_staked

    def reward_rate(self) -> int:
        return self._state.global_state.reward_rate

    @property
    def paused(self) -> bool:
        return self._state.global_state.paused

    def reward_per_token(self, now: Optional[int] = None) -> int:
        """A *now* before the last booked update reads the booked value."""
        return staking_core.reward_per_token(self._state, self.now() if now is None else now)

    def earned(self, account: AccountId, now: Optional[int] = None) -> Amount:
        return staking_core.earned(self._state, account, self.now() if now is None else now)

    def reward_reserve(self) -> Amount:
        """Reward tokens held by the ledger that are not staked principal."""
        held = self.reward_token.balance_of(self.address)
        if self._state.global_state.single_token:
            held -= self._state.global_state.total_staked
        return max(held, 0)

    # -- Shell plumbing ------------------------------------------------------

    def _guarded(self, op: str, fn: Callable[..., TxResult], *args) -> TxResult:
        if self._guard.locked:
            logger.debug(f"{op} rejected: re-entrant call")
            return TxResult.failure(ErrorKind.REENTRANT_CALL, f"re-entrant call to {op}")
        with self._guard.hold():
            result = fn(*args)
        if result.ok:
            logger.info(f"{op} committed: {result.value}")
            self.events.publish(result.events)
        else:
            logger.debug(f"{op} rejected: {result.error.value if result.error else None}: {result.detail}")
        return result

    def _commit(self, step: StepResult[StakingState], plan: Sequence[transfers.Transfer] = ()) -> TxResult:
        if not step.ok:
            return TxResult.failure(step.error, step.detail)
        assert step.state is not None
        previous = self._state
        self._state = step.state
        failed = transfers.execute(plan)
        if failed is not None:
            self._state = previous
            logger.warning(f"Rolled back staking state after failed transfer {failed.describe()}")
            return TxResult.failure(ErrorKind.TRANSFER_FAILED, f"transfer failed: {failed.describe()}")
        return TxResult(ok=True, value=step.value, events=step.events)

    # -- Operations ----------------------------------------------------------

    def stake(self, account: AccountId, amount: Amount) -> TxResult:
        return self._guarded("stake", self._stake, account, amount)

    def _stake(self, account: AccountId, amount: Amount) -> TxResult:
        step = staking_core.stake(self._state, account, amount, self.now())
        if not step.ok:
            return TxResult.failure(step.error, step.detail)
        token = self.staking_token
        balance = token.balance_of(account)
        if balance < amount:
            return TxResult.failure(ErrorKind.INSUFFICIENT_BALANCE, f"{account} holds {balance}, needs {amount}")
        allowance = token.allowance(account, self.address)
        if allowance < amount:
            return TxResult.failure(
                ErrorKind.INSUFFICIENT_ALLOWANCE,
                f"{account} approved {allowance} to {self.address}, needs {amount}",
            )
        return self._commit(step, [transfers.pull(token, account, self.address, amount)])

    def withdraw(self, account: AccountId, amount: Amount) -> TxResult:
        return self._guarded("withdraw", self._withdraw, account, amount)

    def _withdraw(self, account: AccountId, amount: Amount) -> TxResult:
        step = staking_core.withdraw(self._state, account, amount, self.now())
        if not step.ok:
            return TxResult.failure(step.error, step.detail)
        return self._commit(step, [transfers.push(self.staking_token, self.address, account, amount)])

    def get_reward(self, account: AccountId) -> TxResult:
        """Pay out everything owed; ``value`` is the amount paid (0 for a no-op)."""
        return self._guarded("get_reward", self._get_reward, account)

    def _get_reward(self, account: AccountId) -> TxResult:
        step = staking_core.get_reward(self._state, account, self.now())
        if not step.ok:
            return TxResult.failure(step.error, step.detail)
        reward = step.value
        if reward == 0:
            return self._commit(step)
        reserve = self.reward_reserve()
        if reward > reserve:
            return TxResult.failure(
                ErrorKind.INSUFFICIENT_BALANCE,
                f"reward reserve {reserve} cannot cover {reward}",
            )
        return self._commit(step, [transfers.push(self.reward_token, self.address, account, reward)])

    def compound_rewards(self, account: AccountId) -> TxResult:
        """Re-stake everything owed; ``value`` is the amount compounded."""
        return self._guarded("compound_rewards", self._compound_rewards, account)

    def _compound_rewards(self, account: AccountId) -> TxResult:
        step = staking_core.compound_rewards(self._state, account, self.now())
        if not step.ok:
            return TxResult.failure(step.error, step.detail)
        reward = step.value
        if reward > 0:
            reserve = self.reward_reserve()
            if reward > reserve:
                return TxResult.failure(
                    ErrorKind.INSUFFICIENT_BALANCE,
                    f"reward reserve {reserve} cannot cover {reward}",
                )
        # Reward tokens already sit in the ledger's account; only the books move.
        return self._commit(step)

    def set_reward_rate(self, caller: AccountId, new_rate: int) -> TxResult:
        return self._guarded("set_reward_rate", self._set_reward_rate, caller, new_rate)

    def _set_reward_rate(self, caller: AccountId, new_rate: int) -> TxResult:
        return self._commit(staking_core.set_reward_rate(self._state, caller, new_rate, self.now()))

    def pause(self, caller: AccountId) -> TxResult:
        return self._guarded("pause", self._set_paused, caller, True)

    def unpause(self, caller: AccountId) -> TxResult:
        return self._guarded("unpause", self._set_paused, caller, False)

    def _set_paused(self, caller: AccountId, paused: bool) -> TxResult:
        return self._commit(staking_core.set_paused(self._state, caller, paused, self.now()))

    def fund_rewards(self, funder: AccountId, amount: Amount) -> TxResult:
        """Move *amount* reward tokens from *funder* into the reward reserve."""
        return self._guarded("fund_rewards", self._fund_rewards, funder, amount)

    def _fund_rewards(self, funder: AccountId, amount: Amount) -> TxResult:
        if not is_amount(amount):
            return TxResult.failure(ErrorKind.INVALID_AMOUNT, f"funding amount must be positive: {amount!r}")
        balance = self.reward_token.balance_of(funder)
        if balance < amount:
            return TxResult.failure(ErrorKind.INSUFFICIENT_BALANCE, f"{funder} holds {balance}, needs {amount}")
        failed = transfers.execute([transfers.push(self.reward_token, funder, self.address, amount)])
        if failed is not None:
            return TxResult.failure(ErrorKind.TRANSFER_FAILED, f"transfer failed: {failed.describe()}")
        return TxResult(ok=True, value=amount)
