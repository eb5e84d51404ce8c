"""
Transaction Posting

DESIGN DECISION: Account balances are maintained incrementally.
Posting a transaction moves exactly one account's balance by the
transaction's signed amount; history is never re-scanned.

This module is pure. It returns new values and never touches the
store, so the caller decides when (and whether) to persist them.

KNOWN LIMITATION: the new balance is computed from the caller's
snapshot of the account, not from a server-side increment. Two
postings against the same account from different sessions can race,
and the last write wins.
"""

from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from wealthflow.models.finance import Account, Transaction, TransactionType


class PostingResult(BaseModel):
    """
    Outcome of posting one transaction.

    updated_account is None when no balance changes (dangling
    account reference, or a transfer).
    """
    model_config = ConfigDict(frozen=True)

    transaction: Transaction
    updated_account: Optional[Account] = None
    accounts: tuple[Account, ...] = ()

    @property
    def balance_changed(self) -> bool:
        return self.updated_account is not None


def balance_delta(transaction: Transaction) -> Optional[Decimal]:
    """
    Signed effect of a transaction on its account.

    Transfers return None: the record has no destination account,
    so there is nothing defined to move.
    """
    if transaction.type == TransactionType.INCOME:
        return transaction.amount
    if transaction.type == TransactionType.EXPENSE:
        return -transaction.amount
    return None


def find_account(account_id: str, accounts: Sequence[Account]) -> Optional[Account]:
    """First account with this id, or None."""
    for account in accounts:
        if account.id == account_id:
            return account
    return None


def post_transaction(
    transaction: Transaction,
    accounts: Sequence[Account],
) -> PostingResult:
    """
    Apply a new transaction to the in-memory accounts.

    The transaction is always part of the result. If its account is
    missing from `accounts`, this is a silent no-op for balances and
    the accounts come back unchanged.
    """
    current = tuple(accounts)
    delta = balance_delta(transaction)
    account = find_account(transaction.account_id, current)

    if account is None or delta is None:
        return PostingResult(transaction=transaction, accounts=current)

    updated = account.model_copy(update={"balance": account.balance + delta})
    return PostingResult(
        transaction=transaction,
        updated_account=updated,
        accounts=tuple(updated if a is account else a for a in current),
    )
