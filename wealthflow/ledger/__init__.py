"""Ledger package."""

from wealthflow.ledger.posting import (
    PostingResult,
    balance_delta,
    find_account,
    post_transaction,
)

__all__ = ["PostingResult", "balance_delta", "find_account", "post_transaction"]
