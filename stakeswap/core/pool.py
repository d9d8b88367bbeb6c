"""
Liquidity pool transitions: add/remove liquidity and exact-in swaps.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per operation (plus an O(holders) copy of the share map)
- Invariant: after each swap, reserve_in' * reserve_out' >= reserve_in * reserve_out

Every function is pure: it takes a `PoolState` and returns a `StepResult`
carrying the next state, the outcome and the events to publish. A rejected
step carries an `ErrorKind` and no state, so the caller has nothing to undo.
"""

from __future__ import annotations

from dataclasses import replace
from fractions import Fraction
from typing import Dict

from ..kernels import cpmm_swap, lp_math
from ..kernels.fixed_point import FixedPointOverflow
from ..state.pools import PoolState
from ..state.types import AccountId, Amount, TokenId
from .errors import ErrorKind
from .events import LiquidityAdded, LiquidityRemoved, SwapExecuted
from .invariants import check_pool
from .types import (
    MAX_AMOUNT,
    AddLiquidityOutcome,
    RemoveLiquidityOutcome,
    StepResult,
    SwapOutcome,
    is_amount,
    reject,
)


def _with_shares(pool: PoolState, account: AccountId, delta: int) -> Dict[AccountId, Amount]:
    shares = dict(pool.shares)
    balance = shares.get(account, 0) + delta
    if balance < 0:
        raise ValueError(f"Insufficient LP balance: {shares.get(account, 0)} + {delta} < 0")
    if balance == 0:
        shares.pop(account, None)
    else:
        shares[account] = balance
    return shares


def _finish(new_pool: PoolState, value, event) -> StepResult[PoolState]:
    violations = check_pool(new_pool)
    if violations:
        return reject(ErrorKind.INVARIANT_VIOLATION, ",".join(violations))
    return StepResult(ok=True, state=new_pool, value=value, events=(event,))


def add_liquidity(
    pool: PoolState,
    provider: AccountId,
    amount_a_desired: Amount,
    amount_b_desired: Amount,
    amount_a_min: Amount = 0,
    amount_b_min: Amount = 0,
) -> StepResult[PoolState]:
    """
    Deposit both tokens and mint LP shares.

    First deposit into an empty pool:
        used = desired (or the seed-price optimal pair when a seed hint exists)
        shares = floor(sqrt(amount_a * amount_b))

    Subsequent deposits use the ratio-preserving optimal pair and mint
        shares = min(floor(amount_a * total / reserve_a), floor(amount_b * total / reserve_b))

    `amount_*_min` is the caller's tolerance band on the used amounts.
    """
    if not is_amount(amount_a_desired) or not is_amount(amount_b_desired):
        return reject(
            ErrorKind.INVALID_AMOUNT,
            f"deposit amounts must be in [1, MAX_AMOUNT]: ({amount_a_desired}, {amount_b_desired})",
        )
    if not is_amount(amount_a_min, allow_zero=True) or not is_amount(amount_b_min, allow_zero=True):
        return reject(ErrorKind.INVALID_AMOUNT, "minimum amounts must be non-negative")

    try:
        if pool.is_empty:
            if pool.seed_price is not None:
                num, den = pool.seed_price
                opt = lp_math.optimal_liquidity(
                    reserve0=den,
                    reserve1=num,
                    amount0_desired=amount_a_desired,
                    amount1_desired=amount_b_desired,
                )
            else:
                opt = lp_math.optimal_liquidity(
                    reserve0=0,
                    reserve1=0,
                    amount0_desired=amount_a_desired,
                    amount1_desired=amount_b_desired,
                )
            amount_a, amount_b = opt.amount0_used, opt.amount1_used
            if amount_a <= 0 or amount_b <= 0:
                return reject(ErrorKind.INVALID_AMOUNT, "deposit too small for the seed price")
            minted = lp_math.mint_liquidity_initial(amount0=amount_a, amount1=amount_b)
        else:
            opt = lp_math.optimal_liquidity(
                reserve0=pool.reserve_a,
                reserve1=pool.reserve_b,
                amount0_desired=amount_a_desired,
                amount1_desired=amount_b_desired,
            )
            amount_a, amount_b = opt.amount0_used, opt.amount1_used
            if amount_a <= 0 or amount_b <= 0:
                return reject(ErrorKind.INVALID_AMOUNT, "deposit too small for the pool ratio")
            minted = lp_math.mint_liquidity(
                reserve0=pool.reserve_a,
                reserve1=pool.reserve_b,
                total_supply=pool.total_shares,
                amount0=amount_a,
                amount1=amount_b,
            )
    except FixedPointOverflow as exc:
        return reject(ErrorKind.OVERFLOW, str(exc))

    if amount_a < amount_a_min:
        return reject(ErrorKind.SLIPPAGE_EXCEEDED, f"amount_a used ({amount_a}) < amount_a_min ({amount_a_min})")
    if amount_b < amount_b_min:
        return reject(ErrorKind.SLIPPAGE_EXCEEDED, f"amount_b used ({amount_b}) < amount_b_min ({amount_b_min})")
    if minted <= 0:
        return reject(ErrorKind.INVALID_AMOUNT, "insufficient liquidity minted")

    new_reserve_a = pool.reserve_a + amount_a
    new_reserve_b = pool.reserve_b + amount_b
    if new_reserve_a > MAX_AMOUNT or new_reserve_b > MAX_AMOUNT:
        return reject(ErrorKind.OVERFLOW, "reserves would exceed MAX_AMOUNT")

    new_pool = replace(
        pool,
        reserve_a=new_reserve_a,
        reserve_b=new_reserve_b,
        total_shares=pool.total_shares + minted,
        shares=_with_shares(pool, provider, minted),
        seed_price=None,
    )
    outcome = AddLiquidityOutcome(amount_a=amount_a, amount_b=amount_b, shares_minted=minted)
    event = LiquidityAdded(
        pool=pool.pool_id,
        provider=provider,
        amount_a=amount_a,
        amount_b=amount_b,
        shares_minted=minted,
    )
    return _finish(new_pool, outcome, event)


def remove_liquidity(
    pool: PoolState,
    provider: AccountId,
    shares: Amount,
    amount_a_min: Amount = 0,
    amount_b_min: Amount = 0,
) -> StepResult[PoolState]:
    """
    Burn LP shares for a proportional share of both reserves.

    Outputs:
        amount_a = floor(reserve_a * shares / total_shares)
        amount_b = floor(reserve_b * shares / total_shares)

    Burning the whole supply leaves reserves and total_shares at exactly zero.
    """
    if not is_amount(shares):
        return reject(ErrorKind.INVALID_AMOUNT, f"shares must be in [1, MAX_AMOUNT]: {shares}")
    if not is_amount(amount_a_min, allow_zero=True) or not is_amount(amount_b_min, allow_zero=True):
        return reject(ErrorKind.INVALID_AMOUNT, "minimum amounts must be non-negative")

    owned = pool.shares_of(provider)
    if shares > owned:
        return reject(ErrorKind.INSUFFICIENT_SHARES, f"requested {shares} > owned {owned}")

    burn = lp_math.burn_liquidity(
        reserve0=pool.reserve_a,
        reserve1=pool.reserve_b,
        total_supply=pool.total_shares,
        lp_amount=shares,
    )
    if burn.amount0_out < amount_a_min:
        return reject(ErrorKind.SLIPPAGE_EXCEEDED, f"amount_a ({burn.amount0_out}) < amount_a_min ({amount_a_min})")
    if burn.amount1_out < amount_b_min:
        return reject(ErrorKind.SLIPPAGE_EXCEEDED, f"amount_b ({burn.amount1_out}) < amount_b_min ({amount_b_min})")

    new_pool = replace(
        pool,
        reserve_a=pool.reserve_a - burn.amount0_out,
        reserve_b=pool.reserve_b - burn.amount1_out,
        total_shares=pool.total_shares - shares,
        shares=_with_shares(pool, provider, -shares),
    )
    outcome = RemoveLiquidityOutcome(
        amount_a=burn.amount0_out,
        amount_b=burn.amount1_out,
        shares_burned=shares,
    )
    event = LiquidityRemoved(
        pool=pool.pool_id,
        provider=provider,
        amount_a=burn.amount0_out,
        amount_b=burn.amount1_out,
        shares_burned=shares,
    )
    return _finish(new_pool, outcome, event)


def swap(
    pool: PoolState,
    trader: AccountId,
    token_in: TokenId,
    amount_in: Amount,
    min_amount_out: Amount = 0,
) -> StepResult[PoolState]:
    """
    Exact-in swap against the pool.

    The gross input (fee included) stays in the pool; the output is floored so
    repeated tiny swaps can only grow k.
    """
    if not pool.has_token(token_in):
        return reject(ErrorKind.INVALID_PAIR, f"token {token_in} not in pool {pool.pool_id}")
    if not is_amount(amount_in):
        return reject(ErrorKind.INVALID_AMOUNT, f"amount_in must be in [1, MAX_AMOUNT]: {amount_in}")
    if not is_amount(min_amount_out, allow_zero=True):
        return reject(ErrorKind.INVALID_AMOUNT, "min_amount_out must be non-negative")
    if pool.reserve_a == 0 or pool.reserve_b == 0:
        return reject(ErrorKind.NO_LIQUIDITY, f"pool {pool.pool_id} has no liquidity")

    a_to_b = token_in == pool.token_a
    reserve_in, reserve_out = (pool.reserve_a, pool.reserve_b) if a_to_b else (pool.reserve_b, pool.reserve_a)

    if reserve_in + amount_in > MAX_AMOUNT:
        return reject(ErrorKind.OVERFLOW, "reserve_in would exceed MAX_AMOUNT")

    amount_out = cpmm_swap.get_amount_out(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_bps=pool.fee_bps,
    )
    if amount_out <= 0:
        return reject(ErrorKind.INVALID_AMOUNT, "amount_out is zero (trade too small)")
    if amount_out < min_amount_out:
        return reject(ErrorKind.SLIPPAGE_EXCEEDED, f"amount_out ({amount_out}) < min_amount_out ({min_amount_out})")

    res = cpmm_swap.swap_exact_in(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_bps=pool.fee_bps,
    )

    if a_to_b:
        new_pool = replace(pool, reserve_a=res.new_reserve_in, reserve_b=res.new_reserve_out)
    else:
        new_pool = replace(pool, reserve_a=res.new_reserve_out, reserve_b=res.new_reserve_in)

    token_out = pool.other_token(token_in)
    outcome = SwapOutcome(token_in=token_in, token_out=token_out, amount_in=amount_in, amount_out=res.amount_out)
    event = SwapExecuted(
        pool=pool.pool_id,
        trader=trader,
        token_in=token_in,
        token_out=token_out,
        amount_in=amount_in,
        amount_out=res.amount_out,
    )
    return _finish(new_pool, outcome, event)


# -- Read-only quotes --------------------------------------------------------

def quote_exact_input(pool: PoolState, token_in: TokenId, amount_in: Amount) -> Amount:
    """Output a swap of *amount_in* would receive now. Raises ValueError on an empty pool."""
    reserve_in = pool.get_reserve(token_in)
    reserve_out = pool.get_reserve(pool.other_token(token_in))
    return cpmm_swap.get_amount_out(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_bps=pool.fee_bps,
    )


def quote_exact_output(pool: PoolState, token_out: TokenId, amount_out: Amount) -> Amount:
    """Minimal input needed to receive *amount_out* of *token_out*."""
    reserve_out = pool.get_reserve(token_out)
    reserve_in = pool.get_reserve(pool.other_token(token_out))
    return cpmm_swap.get_amount_in(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_out=amount_out,
        fee_bps=pool.fee_bps,
    )


def spot_price(pool: PoolState, token: TokenId) -> Fraction:
    """Marginal price of one unit of *token* in units of the other token (no fee)."""
    reserve = pool.get_reserve(token)
    other = pool.get_reserve(pool.other_token(token))
    if reserve == 0 or other == 0:
        raise ValueError(f"pool {pool.pool_id} has no liquidity")
    return Fraction(other, reserve)
