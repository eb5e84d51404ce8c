"""
Tests for WealthFlow

Test strategy:
1. Unit tests for individual components (models, ledger, aggregation)
2. Flow tests with in-memory store and auth
3. No real API calls in tests (fake Gemini model, no Google Sheets)
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from wealthflow.models.finance import (
    CATEGORIES,
    Account,
    AccountType,
    StockHolding,
    Transaction,
    TransactionType,
    categories_for,
    default_category,
)
from wealthflow.models.dashboard import MonthlyCashflow
from wealthflow.models.user import UserIdentity
from wealthflow.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestAccountModel:
    """Tests for the Account model."""

    def test_account_defaults(self):
        """Test that type, balance and currency have defaults."""
        account = Account(name="Main")
        assert account.type == AccountType.BANK
        assert account.balance == Decimal("0")
        assert account.currency == "TWD"
        assert account.id is None

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        account = Account(name="  Wallet  ")
        assert account.name == "Wallet"

    def test_account_rejects_empty_name(self):
        """Test that an empty name is rejected."""
        with pytest.raises(ValueError):
            Account(name="   ")

    def test_account_allows_negative_balance(self):
        """Credit accounts carry negative balances."""
        account = Account(name="Card", type=AccountType.CREDIT, balance=Decimal("-2500"))
        assert account.balance == Decimal("-2500")

    def test_account_is_immutable(self):
        """Test that records cannot be mutated in place."""
        account = Account(name="Main")
        with pytest.raises(ValueError):
            account.balance = Decimal("10")

    def test_account_document_excludes_id(self):
        """Test that the stored document carries no id."""
        account = Account(id="abc", name="Main", type=AccountType.CASH, balance=Decimal("12.50"))
        doc = account.to_document()
        assert "id" not in doc
        assert doc["type"] == "現金"
        assert Decimal(doc["balance"]) == Decimal("12.50")

    def test_account_from_document(self):
        """Test rebuilding an account from a stored document."""
        account = Account.from_document("acc-1", {
            "name": "Savings",
            "type": "銀行",
            "balance": "1000",
            "currency": "USD",
        })
        assert account.id == "acc-1"
        assert account.type == AccountType.BANK
        assert account.balance == Decimal("1000")
        assert account.currency == "USD"


class TestStockHoldingModel:
    """Tests for the StockHolding model."""

    def test_symbol_uppercased(self):
        """Test that symbols are normalized to uppercase on entry."""
        holding = StockHolding(symbol="2330.tw", shares=Decimal("10"))
        assert holding.symbol == "2330.TW"

    def test_rejects_negative_shares(self):
        """Test that negative share counts are rejected."""
        with pytest.raises(ValueError):
            StockHolding(symbol="AAPL", shares=Decimal("-1"))

    def test_last_updated_defaults_to_now(self):
        """Test that last_updated is set on creation."""
        before = datetime.now(timezone.utc)
        holding = StockHolding(symbol="AAPL")
        assert holding.last_updated >= before

    def test_with_price_returns_copy(self):
        """Test that with_price leaves the original untouched."""
        stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)
        holding = StockHolding(symbol="AAPL", current_price=Decimal("100"))
        updated = holding.with_price(Decimal("120.5"), stamp)

        assert updated.current_price == Decimal("120.5")
        assert updated.last_updated == stamp
        assert holding.current_price == Decimal("100")

    def test_round_trip_through_document(self):
        """Test that the JSON document rebuilds the same holding."""
        holding = StockHolding(
            id="s1",
            symbol="AAPL",
            name="Apple",
            shares=Decimal("3"),
            avg_price=Decimal("150.25"),
            current_price=Decimal("185.2"),
        )
        doc = json.loads(json.dumps(holding.to_document()))
        assert StockHolding.from_document("s1", doc).model_dump() == holding.model_dump()


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        txn = Transaction(
            account_id="acc-1",
            type=TransactionType.INCOME,
            amount=Decimal("65000"),
            category="薪資",
            date=date(2023, 10, 5),
        )
        assert txn.type == TransactionType.INCOME
        assert txn.note == ""

    def test_rejects_negative_amount(self):
        """Test that amounts are non-negative magnitudes."""
        with pytest.raises(ValueError):
            Transaction(account_id="acc-1", amount=Decimal("-5"))

    def test_any_category_is_valid(self):
        """Categories outside the taxonomy are still accepted."""
        txn = Transaction(account_id="acc-1", amount=Decimal("1"), category="Something else")
        assert txn.category == "Something else"

    def test_month_key(self):
        """Test the YYYY-MM grouping key."""
        txn = Transaction(account_id="a", amount=Decimal("1"), date=date(2023, 3, 9))
        assert txn.month_key == "2023-03"

    def test_date_stored_as_iso_string(self):
        """Test that the document holds a plain calendar date."""
        txn = Transaction(account_id="a", amount=Decimal("1"), date=date(2023, 11, 1))
        assert txn.to_document()["date"] == "2023-11-01"


class TestCategoryTaxonomy:
    """Tests for the per-type category lists."""

    def test_every_type_has_categories(self):
        """Test that every transaction type has at least one category."""
        for txn_type in TransactionType:
            assert categories_for(txn_type)

    def test_default_is_first_entry(self):
        """Test that the default category is the first in the list."""
        assert default_category(TransactionType.EXPENSE) == "飲食"
        assert default_category(TransactionType.INCOME) == "薪資"
        assert default_category(TransactionType.TRANSFER) == "轉帳"

    def test_categories_for_returns_copy(self):
        """Callers cannot change the static taxonomy."""
        labels = categories_for(TransactionType.EXPENSE)
        labels.append("Extra")
        assert "Extra" not in CATEGORIES[TransactionType.EXPENSE]

    def test_enum_values_are_display_labels(self):
        """Test that stored enum values are the labels users see."""
        assert [t.value for t in AccountType] == ["銀行", "現金", "投資", "信用卡"]
        assert [t.value for t in TransactionType] == ["收入", "支出", "轉帳"]


class TestDerivedModels:
    """Tests for dashboard and identity models."""

    def test_monthly_cashflow_net(self):
        """Test the net property."""
        row = MonthlyCashflow(month="2023-10", income=Decimal("100"), expense=Decimal("30"))
        assert row.net == Decimal("70")

    def test_monthly_cashflow_rejects_bad_month(self):
        """Test that month keys must be YYYY-MM."""
        with pytest.raises(ValueError):
            MonthlyCashflow(month="2023-1")

    def test_display_name_fallbacks(self):
        """Test the display name falls back to the email, then "User"."""
        assert UserIdentity.build("u1", "amy@example.com", "Amy").display_name == "Amy"
        assert UserIdentity.build("u1", "amy@example.com", "").display_name == "amy"
        assert UserIdentity.build("u1", "", None).display_name == "User"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            description="Account created",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_POSTED,
            user_id="u1",
            correlation_id=correlation_id,
            description="Posted",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "transaction_posted"
        assert log_dict["user_id"] == "u1"
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_audit_event_to_sheets_row(self):
        """Test conversion to a row in column order."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCE_UPDATED,
            description="Balance moved",
            details={"new_balance": "1500"},
        )
        row = event.to_sheets_row()
        assert len(row) == len(AUDIT_COLUMNS)
        assert row[2] == "balance_updated"
        assert json.loads(row[9]) == {"new_balance": "1500"}

    def test_builder_transaction_posted(self):
        """Test AuditEventBuilder.transaction_posted."""
        event = AuditEventBuilder.transaction_posted(
            user_id="u1",
            transaction_id="t1",
            account_id="a1",
            transaction_type="收入",
            amount="500",
        )
        assert event.entity_type == "transaction"
        assert event.entity_id == "t1"
        assert event.details["account_id"] == "a1"
        assert event.is_user_action is True

    def test_builder_failures_are_not_info(self):
        """Failure events carry a raised severity."""
        assert AuditEventBuilder.store_write_failed("u1", "add_account", "boom").severity == AuditSeverity.ERROR
        assert AuditEventBuilder.price_refresh_failed("u1", "boom").severity == AuditSeverity.WARNING
        assert AuditEventBuilder.auth_failed("a@b.c", "sign_in", "bad").severity == AuditSeverity.WARNING
