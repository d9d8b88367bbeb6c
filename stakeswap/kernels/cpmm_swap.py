"""
CPMM swap kernel.

Semantics:
- The fee is applied to the *scaled* gross input: `amount_in_after_fee = amount_in * (10_000 - fee_bps)`
  is kept at 1e4 scale so a 0.3% fee on 100 units prices as 99.7, not 99.
- Pricing is Uniswap-v2 style; the whole gross input (fee included) stays in the pool.
- Every division rounds in the pool's favour: exact-in floors the output,
  exact-out ceils the input.
"""

from __future__ import annotations

from dataclasses import dataclass

from .fixed_point import Rounding, mul_div, require_uint


BPS_DENOM = 10_000


def _require_fee_bps(fee_bps: int) -> None:
    if not isinstance(fee_bps, int) or isinstance(fee_bps, bool):
        raise TypeError("fee_bps must be an int")
    if not (0 <= fee_bps < BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM})")


@dataclass(frozen=True)
class SwapExactInResult:
    amount_out: int
    fee_paid: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def compute_fee_paid(*, amount_in: int, fee_bps: int) -> int:
    """
    Fee charged on a gross input, `ceil(amount_in * fee_bps / 10_000)`.

    Informational only: pricing uses the unrounded scaled input.
    """
    require_uint("amount_in", amount_in)
    _require_fee_bps(fee_bps)
    return mul_div(amount_in, fee_bps, BPS_DENOM, Rounding.CEIL)


def get_amount_out(*, reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> int:
    """
    Output for an exact input:

        amount_out = floor(amount_in_after_fee * reserve_out / (reserve_in * 10_000 + amount_in_after_fee))

    which equals `reserve_out - ceil(reserve_in * reserve_out / (reserve_in + amount_in_after_fee))`
    with the fee-adjusted input kept at 1e4 scale.
    """
    require_uint("reserve_in", reserve_in)
    require_uint("reserve_out", reserve_out)
    require_uint("amount_in", amount_in)
    _require_fee_bps(fee_bps)
    if reserve_in == 0 or reserve_out == 0:
        raise ValueError("cannot swap against an empty reserve")
    if amount_in <= 0:
        raise ValueError("amount_in must be positive")

    amount_in_after_fee = amount_in * (BPS_DENOM - fee_bps)
    denominator = reserve_in * BPS_DENOM + amount_in_after_fee
    return mul_div(amount_in_after_fee, reserve_out, denominator)


def get_amount_in(*, reserve_in: int, reserve_out: int, amount_out: int, fee_bps: int) -> int:
    """Minimal gross input that buys at least *amount_out* (ceil rounding)."""
    require_uint("reserve_in", reserve_in)
    require_uint("reserve_out", reserve_out)
    require_uint("amount_out", amount_out)
    _require_fee_bps(fee_bps)
    if reserve_in == 0 or reserve_out == 0:
        raise ValueError("cannot swap against an empty reserve")
    if amount_out <= 0:
        raise ValueError("amount_out must be positive")
    if amount_out >= reserve_out:
        raise ValueError("cannot drain full reserve_out")

    numerator = reserve_in * amount_out * BPS_DENOM
    denominator = (reserve_out - amount_out) * (BPS_DENOM - fee_bps)
    return mul_div(numerator, 1, denominator, Rounding.CEIL)


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

    Raises ValueError on invalid inputs, on a zero output, or if the
    post-swap constant product would decrease.
    """
    amount_out = get_amount_out(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_bps=fee_bps,
    )
    if amount_out <= 0:
        raise ValueError("amount_out is zero (trade too small)")
    if amount_out >= reserve_out:
        raise ValueError("amount_out exceeds reserve_out")

    new_reserve_in = require_uint("new_reserve_in", reserve_in + amount_in)
    new_reserve_out = reserve_out - amount_out

    k_before = reserve_in * reserve_out
    k_after = new_reserve_in * new_reserve_out
    if k_after < k_before:
        raise ValueError(f"Invariant violation: new_k ({k_after}) < old_k ({k_before})")

    return SwapExactInResult(
        amount_out=amount_out,
        fee_paid=compute_fee_paid(amount_in=amount_in, fee_bps=fee_bps),
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )
