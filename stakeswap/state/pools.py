"""
Pool state for constant-product pools.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .types import AccountId, Amount, TokenId


DEFAULT_FEE_BPS = 30


def canonical_pair(token_x: TokenId, token_y: TokenId) -> Tuple[TokenId, TokenId]:
    """Order a token pair canonically (`token_a < token_b`)."""
    if not isinstance(token_x, str) or not isinstance(token_y, str):
        raise TypeError("token ids must be strings")
    if token_x == token_y:
        raise ValueError(f"identical tokens: {token_x}")
    return (token_x, token_y) if token_x < token_y else (token_y, token_x)


def compute_pool_id(token_a: TokenId, token_b: TokenId, fee_bps: int) -> str:
    """
    Deterministically compute a pool_id:

        pool_id = H("StakeSwapPool" || token_a || token_b || fee_bps)
    """
    if token_a >= token_b:
        raise ValueError(f"Tokens must be in canonical order: {token_a} < {token_b}")
    if not (0 <= fee_bps < 10_000):
        raise ValueError(f"fee_bps must be in [0, 10000): {fee_bps}")

    pool_id_data = (
        b"StakeSwapPool"
        + token_a.encode("utf-8")
        + b"\x00"
        + token_b.encode("utf-8")
        + b"\x00"
        + str(int(fee_bps)).encode("utf-8")
    )
    return "0x" + hashlib.sha256(pool_id_data).hexdigest()


@dataclass(frozen=True)
class PoolState:
    """
    State of one token pair's pool.

    Attributes:
        pool_id: Deterministic pool identifier (hex string)
        token_a: First token (must be < token_b)
        token_b: Second token
        reserve_a: Custodied balance of token_a
        reserve_b: Custodied balance of token_b
        total_shares: Sum of all LP share balances
        shares: Per-account LP shares, read-only (zero balances omitted)
        fee_bps: Swap fee in basis points
        seed_price: Optional (num, den) bootstrap ratio of token_b per token_a
    """
    pool_id: str
    token_a: TokenId
    token_b: TokenId
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    total_shares: Amount = 0
    shares: Mapping[AccountId, Amount] = field(default_factory=dict)
    fee_bps: int = DEFAULT_FEE_BPS
    seed_price: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        if self.token_a >= self.token_b:
            raise ValueError(
                f"Tokens must be in canonical order: {self.token_a} < {self.token_b}"
            )
        if not (0 <= self.fee_bps < 10_000):
            raise ValueError(f"fee_bps must be in [0, 10000): {self.fee_bps}")
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve_a}, {self.reserve_b})"
            )
        if self.total_shares < 0:
            raise ValueError(f"total_shares must be non-negative: {self.total_shares}")
        if self.seed_price is not None:
            num, den = self.seed_price
            if num <= 0 or den <= 0:
                raise ValueError(f"seed_price must be positive: {self.seed_price}")
        # Copied behind a read-only view; transitions build a new dict.
        object.__setattr__(self, "shares", MappingProxyType(dict(self.shares)))

    @property
    def is_empty(self) -> bool:
        return self.total_shares == 0

    def has_token(self, token: TokenId) -> bool:
        return token == self.token_a or token == self.token_b

    def get_reserve(self, token: TokenId) -> Amount:
        """
        Get reserve for a specific token.

        Raises:
            ValueError: If token is not in this pool
        """
        if token == self.token_a:
            return self.reserve_a
        elif token == self.token_b:
            return self.reserve_b
        else:
            raise ValueError(f"Token {token} not in pool {self.pool_id}")

    def other_token(self, token: TokenId) -> TokenId:
        if token == self.token_a:
            return self.token_b
        if token == self.token_b:
            return self.token_a
        raise ValueError(f"Token {token} not in pool {self.pool_id}")

    def shares_of(self, account: AccountId) -> Amount:
        return self.shares.get(account, 0)

    def get_constant_product(self) -> int:
        """k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b

    def __repr__(self) -> str:
        return (
            f"PoolState(pool_id={self.pool_id[:16]}..., "
            f"tokens=({self.token_a}, {self.token_b}), "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"total_shares={self.total_shares}, holders={len(self.shares)})"
        )


def empty_pool(token_x: TokenId, token_y: TokenId, fee_bps: int = DEFAULT_FEE_BPS) -> PoolState:
    """Fresh all-zero pool for a pair, in canonical order."""
    token_a, token_b = canonical_pair(token_x, token_y)
    return PoolState(
        pool_id=compute_pool_id(token_a, token_b, fee_bps),
        token_a=token_a,
        token_b=token_b,
        fee_bps=fee_bps,
    )
