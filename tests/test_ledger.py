"""Tests for transaction posting."""

from decimal import Decimal

from wealthflow.ledger import balance_delta, find_account, post_transaction
from wealthflow.models.finance import Account, AccountType, Transaction, TransactionType


def make_accounts():
    return (
        Account(id="cash", name="Wallet", type=AccountType.CASH, balance=Decimal("1000")),
        Account(id="bank", name="Bank", balance=Decimal("20000")),
    )


def make_transaction(txn_type, amount, account_id="cash"):
    return Transaction(account_id=account_id, type=txn_type, amount=Decimal(amount))


class TestBalanceDelta:
    """Tests for the signed effect of a transaction."""

    def test_income_is_positive(self):
        assert balance_delta(make_transaction(TransactionType.INCOME, "500")) == Decimal("500")

    def test_expense_is_negative(self):
        assert balance_delta(make_transaction(TransactionType.EXPENSE, "500")) == Decimal("-500")

    def test_transfer_has_no_effect(self):
        """Transfers carry no destination account, so nothing moves."""
        assert balance_delta(make_transaction(TransactionType.TRANSFER, "500")) is None


class TestPostTransaction:
    """Tests for post_transaction."""

    def test_income_raises_balance(self):
        """Income of 500 on a 1000 balance gives 1500."""
        result = post_transaction(make_transaction(TransactionType.INCOME, "500"), make_accounts())

        assert result.updated_account.balance == Decimal("1500")
        assert find_account("cash", result.accounts).balance == Decimal("1500")

    def test_expense_lowers_balance(self):
        """Expense of 500 on a 1000 balance gives 500."""
        result = post_transaction(make_transaction(TransactionType.EXPENSE, "500"), make_accounts())

        assert result.updated_account.balance == Decimal("500")
        assert result.balance_changed is True

    def test_expense_can_go_negative(self):
        result = post_transaction(make_transaction(TransactionType.EXPENSE, "1200.50"), make_accounts())
        assert result.updated_account.balance == Decimal("-200.50")

    def test_other_accounts_untouched(self):
        """Only the referenced account changes."""
        accounts = make_accounts()
        result = post_transaction(make_transaction(TransactionType.INCOME, "1"), accounts)

        assert result.accounts[1] is accounts[1]
        assert [a.id for a in result.accounts] == ["cash", "bank"]

    def test_inputs_not_mutated(self):
        """Posting returns new values and leaves the input alone."""
        accounts = make_accounts()
        post_transaction(make_transaction(TransactionType.INCOME, "500"), accounts)
        assert accounts[0].balance == Decimal("1000")

    def test_missing_account_is_silent_noop(self):
        """A dangling account_id keeps the transaction but changes no balance."""
        accounts = make_accounts()
        txn = make_transaction(TransactionType.EXPENSE, "500", account_id="deleted")
        result = post_transaction(txn, accounts)

        assert result.transaction == txn
        assert result.updated_account is None
        assert result.balance_changed is False
        assert result.accounts == accounts

    def test_transfer_changes_nothing(self):
        accounts = make_accounts()
        result = post_transaction(make_transaction(TransactionType.TRANSFER, "500"), accounts)

        assert result.updated_account is None
        assert result.accounts == accounts

    def test_empty_accounts(self):
        result = post_transaction(make_transaction(TransactionType.INCOME, "5"), [])
        assert result.accounts == ()
        assert result.updated_account is None

    def test_uses_callers_snapshot(self):
        """The new balance is computed from the snapshot passed in, not a fresh read."""
        stale = (Account(id="cash", name="Wallet", balance=Decimal("100")),)
        result = post_transaction(make_transaction(TransactionType.INCOME, "10"), stale)
        assert result.updated_account.balance == Decimal("110")
