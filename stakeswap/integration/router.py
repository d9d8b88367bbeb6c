"""
DEX router: imperative shell around the pure pool transitions.

Responsibilities:
- resolve a token pair (in any order) to its canonical pool, creating the
  pool on the first deposit into a fresh pair;
- check deadlines and the caller's balance / allowance before committing;
- commit the new pool state, then move tokens; a failed transfer restores the
  previous state and compensates completed transfers;
- keep price-feed registrations used to seed an empty pool's ratio.

Pools live in an arena with stable integer handles assigned in creation order.
All pools custody their reserves in the router's own account (`address`).
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..core import pool as pool_core
from ..core.errors import ErrorKind
from ..core.events import PoolInitialized
from ..core.guard import ReentrancyGuard
from ..core.invariants import check_pool
from ..core.oracle import PriceReading, seed_ratio, validate_reading
from ..core.types import StepResult, TxResult, is_amount
from ..state.pools import PoolState, canonical_pair, empty_pool
from ..state.tokens import PriceFeed, Token
from ..state.types import AccountId, Amount, TokenId
from . import transfers
from .clock import Clock, system_clock
from .config import EngineConfig
from .event_log import EventLog

logger = logging.getLogger(__name__)


class DEXRouter:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        clock: Optional[Clock] = None,
        address: AccountId = "dex-router",
        events: Optional[EventLog] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.address = address
        self.events = events if events is not None else EventLog()
        self._clock: Clock = clock or system_clock
        self._guard = ReentrancyGuard()
        self._tokens: Dict[TokenId, Token] = {}
        self._feeds: Dict[TokenId, PriceFeed] = {}
        self._pools: List[PoolState] = []
        self._by_pair: Dict[Tuple[TokenId, TokenId], int] = {}

    @property
    def operator(self) -> AccountId:
        return self.config.operator

    def now(self) -> int:
        return int(self._clock())

    # -- Registration --------------------------------------------------------

    def register_token(self, token: Token) -> None:
        if not isinstance(token, Token):
            raise TypeError(f"not a token collaborator: {token!r}")
        existing = self._tokens.get(token.token_id)
        if existing is not None and existing is not token:
            raise ValueError(f"token id already registered: {token.token_id}")
        self._tokens[token.token_id] = token

    def token(self, token_id: TokenId) -> Optional[Token]:
        return self._tokens.get(token_id)

    def set_price_feed(self, caller: AccountId, token_id: TokenId, feed: PriceFeed) -> TxResult:
        """Operator only: register (or replace) the feed for *token_id*."""
        if not isinstance(feed, PriceFeed):
            raise TypeError(f"not a price feed: {feed!r}")
        if caller != self.operator:
            logger.debug(f"set_price_feed rejected: {caller} is not the operator")
            return TxResult.failure(ErrorKind.UNAUTHORIZED, f"{caller} is not the operator")
        self._feeds[token_id] = feed
        logger.info(f"Price feed set for {token_id}")
        return TxResult(ok=True, value=token_id)

    def get_price_feed(self, token_id: TokenId) -> Optional[PriceFeed]:
        return self._feeds.get(token_id)

    def get_latest_price(self, token_id: TokenId) -> TxResult:
        feed = self._feeds.get(token_id)
        if feed is None:
            return TxResult.failure(ErrorKind.NO_PRICE_FEED, f"no price feed for {token_id}")
        raw = feed.latest_price()
        if not isinstance(raw, tuple) or len(raw) != 2:
            return TxResult.failure(ErrorKind.INVALID_PRICE, f"malformed feed reading for {token_id}: {raw!r}")
        reading = PriceReading(value=raw[0], timestamp=raw[1])
        kind = validate_reading(reading, self.now(), self.config.max_price_age_seconds)
        if kind is not None:
            return TxResult.failure(kind, f"unusable price for {token_id}: {raw!r}")
        return TxResult(ok=True, value=reading.value)

    # -- Arena ---------------------------------------------------------------

    def _pair(self, token_x: TokenId, token_y: TokenId) -> Tuple[Optional[TxResult], TokenId, TokenId]:
        if not isinstance(token_x, str) or not isinstance(token_y, str) or token_x == token_y:
            return TxResult.failure(ErrorKind.INVALID_PAIR, f"invalid pair ({token_x!r}, {token_y!r})"), "", ""
        for t in (token_x, token_y):
            if t not in self._tokens:
                return TxResult.failure(ErrorKind.INVALID_PAIR, f"unregistered token {t}"), "", ""
        token_a, token_b = canonical_pair(token_x, token_y)
        return None, token_a, token_b

    def _prepare(self, token_a: TokenId, token_b: TokenId) -> Tuple[Optional[int], PoolState]:
        index = self._by_pair.get((token_a, token_b))
        if index is None:
            return None, empty_pool(token_a, token_b, self.config.fee_bps)
        return index, self._pools[index]

    def _store(self, index: Optional[int], pool: PoolState) -> int:
        if index is None:
            self._pools.append(pool)
            index = len(self._pools) - 1
            self._by_pair[(pool.token_a, pool.token_b)] = index
        else:
            self._pools[index] = pool
        return index

    def _restore(self, index: Optional[int], previous: PoolState, stored_at: int) -> None:
        if index is None:
            self._pools.pop(stored_at)
            del self._by_pair[(previous.token_a, previous.token_b)]
        else:
            self._pools[index] = previous

    def _check_funds(self, token: Token, owner: AccountId, amount: Amount) -> Optional[TxResult]:
        balance = token.balance_of(owner)
        if balance < amount:
            return TxResult.failure(
                ErrorKind.INSUFFICIENT_BALANCE,
                f"{owner} holds {balance} {token.token_id}, needs {amount}",
            )
        allowance = token.allowance(owner, self.address)
        if allowance < amount:
            return TxResult.failure(
                ErrorKind.INSUFFICIENT_ALLOWANCE,
                f"{owner} approved {allowance} {token.token_id} to {self.address}, needs {amount}",
            )
        return None

    def _commit(
        self,
        index: Optional[int],
        previous: PoolState,
        step: StepResult[PoolState],
        plan: Sequence[transfers.Transfer],
    ) -> TxResult:
        assert step.state is not None
        stored_at = self._store(index, step.state)
        failed = transfers.execute(plan)
        if failed is not None:
            self._restore(index, previous, stored_at)
            logger.warning(f"Rolled back pool {previous.pool_id[:18]} after failed transfer {failed.describe()}")
            return TxResult.failure(ErrorKind.TRANSFER_FAILED, f"transfer failed: {failed.describe()}")
        return TxResult(ok=True, value=step.value, events=step.events)

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

    def _expired(self, deadline: int) -> Optional[TxResult]:
        if not isinstance(deadline, int) or isinstance(deadline, bool):
            return TxResult.failure(ErrorKind.INVALID_AMOUNT, f"deadline must be an int: {deadline!r}")
        now = self.now()
        if now > deadline:
            return TxResult.failure(ErrorKind.EXPIRED, f"now={now} > deadline={deadline}")
        return None

    # -- Oracle seeding ------------------------------------------------------

    def initialize_pool_with_oracle(self, token_x: TokenId, token_y: TokenId) -> TxResult:
        """
        Create (or re-seed) the empty pool for a pair with a bootstrap ratio of
        ``price_a / price_b`` taken from the registered feeds. ``value`` is the
        pool index. The ratio only shapes the first deposit; swaps never read it.
        """
        return self._guarded("initialize_pool_with_oracle", self._initialize_pool_with_oracle, token_x, token_y)

    def _initialize_pool_with_oracle(self, token_x: TokenId, token_y: TokenId) -> TxResult:
        err, token_a, token_b = self._pair(token_x, token_y)
        if err is not None:
            return err
        index, pool = self._prepare(token_a, token_b)
        if not pool.is_empty:
            return TxResult.failure(ErrorKind.ALREADY_INITIALIZED, f"pool {pool.pool_id} already holds liquidity")

        price_a = self.get_latest_price(token_a)
        if not price_a.ok:
            return price_a
        price_b = self.get_latest_price(token_b)
        if not price_b.ok:
            return price_b

        num, den = seed_ratio(price_a.value, price_b.value)
        seeded = PoolState(
            pool_id=pool.pool_id,
            token_a=token_a,
            token_b=token_b,
            fee_bps=pool.fee_bps,
            seed_price=(num, den),
        )
        violations = check_pool(seeded)
        if violations:
            return TxResult.failure(ErrorKind.INVARIANT_VIOLATION, ",".join(violations))
        stored_at = self._store(index, seeded)
        event = PoolInitialized(
            pool=seeded.pool_id,
            token_a=token_a,
            token_b=token_b,
            seed_price_num=num,
            seed_price_den=den,
        )
        return TxResult(ok=True, value=stored_at, events=(event,))

    # -- Liquidity -----------------------------------------------------------

    def add_liquidity(
        self,
        caller: AccountId,
        token_x: TokenId,
        token_y: TokenId,
        amount_x: Amount,
        amount_y: Amount,
        deadline: int,
        amount_x_min: Amount = 0,
        amount_y_min: Amount = 0,
    ) -> TxResult:
        """
        Deposit into the pair's pool. ``value`` is an `AddLiquidityOutcome`
        with amounts in the pool's canonical order (``token_a``, ``token_b``).
        """
        return self._guarded(
            "add_liquidity",
            self._add_liquidity,
            caller, token_x, token_y, amount_x, amount_y, deadline, amount_x_min, amount_y_min,
        )

    def _add_liquidity(self, caller, token_x, token_y, amount_x, amount_y, deadline, amount_x_min, amount_y_min):
        err = self._expired(deadline)
        if err is not None:
            return err
        err, token_a, token_b = self._pair(token_x, token_y)
        if err is not None:
            return err
        if token_x == token_a:
            amount_a, amount_b, min_a, min_b = amount_x, amount_y, amount_x_min, amount_y_min
        else:
            amount_a, amount_b, min_a, min_b = amount_y, amount_x, amount_y_min, amount_x_min

        index, pool = self._prepare(token_a, token_b)
        step = pool_core.add_liquidity(pool, caller, amount_a, amount_b, min_a, min_b)
        if not step.ok:
            return TxResult.failure(step.error, step.detail)

        outcome = step.value
        tok_a, tok_b = self._tokens[token_a], self._tokens[token_b]
        for token, amount in ((tok_a, outcome.amount_a), (tok_b, outcome.amount_b)):
            err = self._check_funds(token, caller, amount)
            if err is not None:
                return err

        plan = [
            transfers.pull(tok_a, caller, self.address, outcome.amount_a),
            transfers.pull(tok_b, caller, self.address, outcome.amount_b),
        ]
        return self._commit(index, pool, step, plan)

    def remove_liquidity(
        self,
        caller: AccountId,
        token_x: TokenId,
        token_y: TokenId,
        shares: Amount,
        deadline: int,
        amount_x_min: Amount = 0,
        amount_y_min: Amount = 0,
    ) -> TxResult:
        """Burn LP shares. ``value`` is a `RemoveLiquidityOutcome` (canonical order)."""
        return self._guarded(
            "remove_liquidity",
            self._remove_liquidity,
            caller, token_x, token_y, shares, deadline, amount_x_min, amount_y_min,
        )

    def _remove_liquidity(self, caller, token_x, token_y, shares, deadline, amount_x_min, amount_y_min):
        err = self._expired(deadline)
        if err is not None:
            return err
        err, token_a, token_b = self._pair(token_x, token_y)
        if err is not None:
            return err
        min_a, min_b = (amount_x_min, amount_y_min) if token_x == token_a else (amount_y_min, amount_x_min)

        index, pool = self._prepare(token_a, token_b)
        step = pool_core.remove_liquidity(pool, caller, shares, min_a, min_b)
        if not step.ok:
            return TxResult.failure(step.error, step.detail)

        outcome = step.value
        plan = [
            transfers.push(self._tokens[token_a], self.address, caller, outcome.amount_a),
            transfers.push(self._tokens[token_b], self.address, caller, outcome.amount_b),
        ]
        return self._commit(index, pool, step, plan)

    # -- Swaps ---------------------------------------------------------------

    def swap_exact_input_single(
        self,
        caller: AccountId,
        token_in: TokenId,
        token_out: TokenId,
        amount_in: Amount,
        amount_out_min: Amount,
        deadline: int,
    ) -> TxResult:
        """Swap exactly *amount_in* of *token_in* for at least *amount_out_min*. ``value`` is a `SwapOutcome`."""
        return self._guarded(
            "swap_exact_input_single",
            self._swap_exact_input_single,
            caller, token_in, token_out, amount_in, amount_out_min, deadline,
        )

    def _swap_exact_input_single(self, caller, token_in, token_out, amount_in, amount_out_min, deadline):
        err = self._expired(deadline)
        if err is not None:
            return err
        err, token_a, token_b = self._pair(token_in, token_out)
        if err is not None:
            return err
        index, pool = self._prepare(token_a, token_b)
        if index is None:
            return TxResult.failure(ErrorKind.NO_LIQUIDITY, f"no pool for ({token_a}, {token_b})")

        step = pool_core.swap(pool, caller, token_in, amount_in, amount_out_min)
        if not step.ok:
            return TxResult.failure(step.error, step.detail)

        outcome = step.value
        tok_in, tok_out = self._tokens[token_in], self._tokens[token_out]
        err = self._check_funds(tok_in, caller, outcome.amount_in)
        if err is not None:
            return err
        plan = [
            transfers.pull(tok_in, caller, self.address, outcome.amount_in),
            transfers.push(tok_out, self.address, caller, outcome.amount_out),
        ]
        return self._commit(index, pool, step, plan)

    # -- Queries -------------------------------------------------------------

    def pools(self) -> Tuple[PoolState, ...]:
        return tuple(self._pools)

    def get_pool_index(self, token_x: TokenId, token_y: TokenId) -> Optional[int]:
        if token_x == token_y:
            return None
        return self._by_pair.get(canonical_pair(token_x, token_y))

    def get_pool(self, token_x: TokenId, token_y: TokenId) -> Optional[PoolState]:
        index = self.get_pool_index(token_x, token_y)
        return None if index is None else self._pools[index]

    def get_pool_by_index(self, index: int) -> PoolState:
        if not isinstance(index, int) or isinstance(index, bool) or not (0 <= index < len(self._pools)):
            raise IndexError(f"no pool at index {index!r}")
        return self._pools[index]

    def get_reserves(self, token_x: TokenId, token_y: TokenId) -> Tuple[Amount, Amount]:
        """Reserves in the caller's token order; ``(0, 0)`` for an unknown pair."""
        pool = self.get_pool(token_x, token_y)
        if pool is None:
            return 0, 0
        return pool.get_reserve(token_x), pool.get_reserve(token_y)

    def shares_of(self, token_x: TokenId, token_y: TokenId, account: AccountId) -> Amount:
        pool = self.get_pool(token_x, token_y)
        return 0 if pool is None else pool.shares_of(account)

    def quote_exact_input(self, token_in: TokenId, token_out: TokenId, amount_in: Amount) -> TxResult:
        err, _, _ = self._pair(token_in, token_out)
        if err is not None:
            return err
        if not is_amount(amount_in):
            return TxResult.failure(ErrorKind.INVALID_AMOUNT, f"amount_in must be positive: {amount_in!r}")
        pool = self.get_pool(token_in, token_out)
        if pool is None or pool.reserve_a == 0:
            return TxResult.failure(ErrorKind.NO_LIQUIDITY, f"no liquidity for ({token_in}, {token_out})")
        return TxResult(ok=True, value=pool_core.quote_exact_input(pool, token_in, amount_in))

    def quote_exact_output(self, token_in: TokenId, token_out: TokenId, amount_out: Amount) -> TxResult:
        err, _, _ = self._pair(token_in, token_out)
        if err is not None:
            return err
        if not is_amount(amount_out):
            return TxResult.failure(ErrorKind.INVALID_AMOUNT, f"amount_out must be positive: {amount_out!r}")
        pool = self.get_pool(token_in, token_out)
        if pool is None or pool.reserve_a == 0:
            return TxResult.failure(ErrorKind.NO_LIQUIDITY, f"no liquidity for ({token_in}, {token_out})")
        if amount_out >= pool.get_reserve(token_out):
            return TxResult.failure(ErrorKind.NO_LIQUIDITY, f"amount_out {amount_out} exceeds reserve")
        return TxResult(ok=True, value=pool_core.quote_exact_output(pool, token_out, amount_out))

    # -- Persistence ---------------------------------------------------------

    def restore_pools(self, pools: Sequence[PoolState]) -> None:
        """Load an arena (e.g. from a snapshot) into a router with no pools."""
        if self._pools:
            raise ValueError("router already has pools")
        for pool in pools:
            violations = check_pool(pool)
            if violations:
                raise ValueError(f"pool {pool.pool_id} violates {violations}")
            if (pool.token_a, pool.token_b) in self._by_pair:
                raise ValueError(f"duplicate pool for ({pool.token_a}, {pool.token_b})")
            self._store(None, pool)
