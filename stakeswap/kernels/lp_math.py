"""
Liquidity math kernel.

Pure functions with explicit rounding rules. All divisions floor, which always
favours existing share holders over the depositor/withdrawer.
"""

from __future__ import annotations

from dataclasses import dataclass

from .fixed_point import isqrt, mul_div, require_uint


@dataclass(frozen=True)
class OptimalLiquidityResult:
    amount0_used: int
    amount1_used: int
    amount0_refund: int
    amount1_refund: int


@dataclass(frozen=True)
class BurnLiquidityResult:
    amount0_out: int
    amount1_out: int


def optimal_liquidity(
    *,
    reserve0: int,
    reserve1: int,
    amount0_desired: int,
    amount1_desired: int,
) -> OptimalLiquidityResult:
    """
    Compute ratio-preserving used amounts and refunds.

    `reserve0`/`reserve1` may also be a seed price ratio for an empty pool.
    When either is zero, uses everything and refunds nothing.
    """
    for name, v in (
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("amount0_desired", amount0_desired),
        ("amount1_desired", amount1_desired),
    ):
        require_uint(name, v)
    if amount0_desired <= 0 or amount1_desired <= 0:
        raise ValueError("desired amounts must be positive")

    if reserve0 == 0 or reserve1 == 0:
        return OptimalLiquidityResult(
            amount0_used=amount0_desired,
            amount1_used=amount1_desired,
            amount0_refund=0,
            amount1_refund=0,
        )

    amount1_from_amount0 = mul_div(amount0_desired, reserve1, reserve0)
    if amount1_from_amount0 <= amount1_desired:
        amount0_used = amount0_desired
        amount1_used = amount1_from_amount0
    else:
        amount0_used = mul_div(amount1_desired, reserve0, reserve1)
        amount1_used = amount1_desired

    if amount0_used > amount0_desired or amount1_used > amount1_desired:
        raise AssertionError("used amounts exceed desired amounts")

    return OptimalLiquidityResult(
        amount0_used=amount0_used,
        amount1_used=amount1_used,
        amount0_refund=amount0_desired - amount0_used,
        amount1_refund=amount1_desired - amount1_used,
    )


def mint_liquidity_initial(*, amount0: int, amount1: int) -> int:
    """Bootstrap mint: `floor(sqrt(amount0 * amount1))`."""
    require_uint("amount0", amount0)
    require_uint("amount1", amount1)
    if amount0 <= 0 or amount1 <= 0:
        raise ValueError("initial amounts must be positive")
    return isqrt(amount0 * amount1)


def mint_liquidity(
    *,
    reserve0: int,
    reserve1: int,
    total_supply: int,
    amount0: int,
    amount1: int,
) -> int:
    """
    Shares minted for a deposit into a non-empty pool.

    Takes the smaller of the two proportional mints so existing holders are
    never diluted:

        lp = min(floor(amount0 * total_supply / reserve0), floor(amount1 * total_supply / reserve1))
    """
    for name, v in (
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("total_supply", total_supply),
        ("amount0", amount0),
        ("amount1", amount1),
    ):
        require_uint(name, v)
    if reserve0 == 0 or reserve1 == 0 or total_supply == 0:
        raise ValueError("pool is empty; use mint_liquidity_initial")

    lp0 = mul_div(amount0, total_supply, reserve0)
    lp1 = mul_div(amount1, total_supply, reserve1)
    return min(lp0, lp1)


def burn_liquidity(
    *,
    reserve0: int,
    reserve1: int,
    total_supply: int,
    lp_amount: int,
) -> BurnLiquidityResult:
    """
    Proportional withdrawal:

        amount0_out = floor(lp_amount * reserve0 / total_supply)
        amount1_out = floor(lp_amount * reserve1 / total_supply)

    Burning the whole supply returns the reserves exactly.
    """
    for name, v in (
        ("reserve0", reserve0),
        ("reserve1", reserve1),
        ("total_supply", total_supply),
        ("lp_amount", lp_amount),
    ):
        require_uint(name, v)
    if lp_amount <= 0:
        raise ValueError("lp_amount must be positive")
    if lp_amount > total_supply:
        raise ValueError(f"Cannot burn more LP than supply: {lp_amount} > {total_supply}")

    return BurnLiquidityResult(
        amount0_out=mul_div(lp_amount, reserve0, total_supply),
        amount1_out=mul_div(lp_amount, reserve1, total_supply),
    )
