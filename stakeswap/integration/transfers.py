"""
Token side effects for the shells.

A shell commits its new state first, then runs the planned transfers in
order. If one fails, the completed ones are reversed (newest first), allowances
spent by reversed pulls are re-approved, and the shell restores its previous
state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..state.tokens import Token
from ..state.types import AccountId, Amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transfer:
    """
    One planned token movement.

    With ``spender`` set this is a pull (``transfer_from`` on behalf of
    ``source``); otherwise ``source`` sends directly.
    """

    token: Token
    source: AccountId
    dest: AccountId
    amount: Amount
    spender: Optional[AccountId] = None

    def describe(self) -> str:
        return f"{self.amount} {self.token.token_id} {self.source}->{self.dest}"


def pull(token: Token, owner: AccountId, custodian: AccountId, amount: Amount) -> Transfer:
    return Transfer(token=token, source=owner, dest=custodian, amount=amount, spender=custodian)


def push(token: Token, custodian: AccountId, to: AccountId, amount: Amount) -> Transfer:
    return Transfer(token=token, source=custodian, dest=to, amount=amount)


def _run(transfer: Transfer) -> Tuple[bool, Optional[Amount]]:
    """Returns (succeeded, allowance held before a pull)."""
    allowance = None
    try:
        if transfer.spender is not None:
            allowance = transfer.token.allowance(transfer.source, transfer.spender)
            ok = transfer.token.transfer_from(transfer.spender, transfer.source, transfer.dest, transfer.amount)
        else:
            ok = transfer.token.transfer(transfer.source, transfer.dest, transfer.amount)
    except Exception:
        logger.warning(f"Transfer {transfer.describe()} raised", exc_info=True)
        return False, None
    return ok is True, allowance


def _reverse(transfer: Transfer, allowance: Optional[Amount]) -> bool:
    """Send the tokens back; a pull also gets its spent allowance re-approved."""
    try:
        ok = transfer.token.transfer(transfer.dest, transfer.source, transfer.amount)
        if ok is True and allowance is not None:
            ok = transfer.token.approve(transfer.source, transfer.spender, allowance)
    except Exception:
        logger.error(f"Compensation for {transfer.describe()} raised", exc_info=True)
        return False
    return ok is True


def execute(transfers: Sequence[Transfer]) -> Optional[Transfer]:
    """
    Run *transfers* in order. Returns None on success, else the transfer that
    failed (after compensating the ones that had completed).
    """
    done: List[Tuple[Transfer, Optional[Amount]]] = []
    for transfer in transfers:
        if transfer.amount == 0:
            continue
        ok, allowance = _run(transfer)
        if not ok:
            logger.warning(f"Transfer {transfer.describe()} failed; compensating {len(done)} completed transfer(s)")
            for completed, allowance_before in reversed(done):
                if not _reverse(completed, allowance_before):
                    logger.error(f"Could not compensate {completed.describe()}")
            return transfer
        done.append((transfer, allowance))
    return None
