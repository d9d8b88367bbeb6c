"""
External collaborators: ERC-20-style tokens and price feeds.

The engines only depend on the `Token` and `PriceFeed` protocols. `InMemoryToken`
and `FixedPriceFeed` are reference implementations for tests and the demo CLI.
Caller identity is passed explicitly (there is no ambient `msg.sender`).
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple, runtime_checkable

from .types import AccountId, Amount, TokenId


@runtime_checkable
class Token(Protocol):
    token_id: TokenId

    def transfer(self, sender: AccountId, to: AccountId, amount: Amount) -> bool: ...

    def transfer_from(self, spender: AccountId, owner: AccountId, to: AccountId, amount: Amount) -> bool: ...

    def approve(self, owner: AccountId, spender: AccountId, amount: Amount) -> bool: ...

    def allowance(self, owner: AccountId, spender: AccountId) -> Amount: ...

    def balance_of(self, account: AccountId) -> Amount: ...


@runtime_checkable
class PriceFeed(Protocol):
    def latest_price(self) -> Tuple[int, int]:
        """Return (value, timestamp)."""
        ...


class InMemoryToken:
    """
    Deterministic balance/allowance table for one token.

    Notes:
    - Balances are always non-negative; zero balances are omitted.
    - Failed transfers return False and leave the table untouched.
    """

    def __init__(self, token_id: TokenId) -> None:
        if not isinstance(token_id, str) or not token_id:
            raise ValueError("token_id must be a non-empty string")
        self.token_id = token_id
        self._balances: Dict[AccountId, Amount] = {}
        self._allowances: Dict[Tuple[AccountId, AccountId], Amount] = {}

    def balance_of(self, account: AccountId) -> Amount:
        return self._balances.get(account, 0)

    def allowance(self, owner: AccountId, spender: AccountId) -> Amount:
        return self._allowances.get((owner, spender), 0)

    def total_supply(self) -> Amount:
        return sum(self._balances.values())

    def mint(self, account: AccountId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"mint amount must be non-negative: {amount}")
        self._set_balance(account, self.balance_of(account) + amount)

    def approve(self, owner: AccountId, spender: AccountId, amount: Amount) -> bool:
        if amount < 0:
            return False
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: AccountId, to: AccountId, amount: Amount) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self._move(sender, to, amount)
        return True

    def transfer_from(self, spender: AccountId, owner: AccountId, to: AccountId, amount: Amount) -> bool:
        allowed = self.allowance(owner, spender)
        if amount < 0 or allowed < amount or self.balance_of(owner) < amount:
            return False
        self.approve(owner, spender, allowed - amount)
        self._move(owner, to, amount)
        return True

    def _move(self, sender: AccountId, to: AccountId, amount: Amount) -> None:
        self._set_balance(sender, self.balance_of(sender) - amount)
        self._set_balance(to, self.balance_of(to) + amount)

    def _set_balance(self, account: AccountId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def __repr__(self) -> str:
        return f"InMemoryToken({self.token_id!r}, {len(self._balances)} holders)"


class FixedPriceFeed:
    """Price feed returning a settable (value, timestamp)."""

    def __init__(self, value: int, timestamp: int = 0) -> None:
        self.value = value
        self.timestamp = timestamp

    def set_price(self, value: int, timestamp: int) -> None:
        self.value = value
        self.timestamp = timestamp

    def latest_price(self) -> Tuple[int, int]:
        return self.value, self.timestamp
