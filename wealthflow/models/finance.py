"""
Core Data Models for WealthFlow

These models define the three record types kept per user:
1. Account - a named store of money with a running balance
2. StockHolding - a position in one security
3. Transaction - a dated income / expense / transfer event

DESIGN DECISION: Records are immutable Pydantic models. Any change
(e.g. a balance update) produces a new instance via model_copy, and the
in-memory collections only ever change when the store emits a snapshot.

Amounts are Decimal so that sums on the dashboard are exact.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_CURRENCY = "TWD"
DEFAULT_ACCOUNT_NAME = "預設現金帳戶"
UNKNOWN_ACCOUNT_LABEL = "未知帳戶"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# ENUMS - stored values are the labels users see
# =============================================================================

class AccountType(str, Enum):
    """
    Account classification.

    Display only: no account type behaves differently from another.
    """
    BANK = "銀行"
    CASH = "現金"
    INVESTMENT = "投資"
    CREDIT = "信用卡"


class TransactionType(str, Enum):
    """
    Transaction type.

    The sign of a transaction's effect is implied by its type;
    amounts are always stored as non-negative magnitudes.
    """
    INCOME = "收入"
    EXPENSE = "支出"
    TRANSFER = "轉帳"


# =============================================================================
# CATEGORY TAXONOMY
# =============================================================================

CATEGORIES: dict[TransactionType, tuple[str, ...]] = {
    TransactionType.EXPENSE: ("飲食", "交通", "居住", "娛樂", "醫療", "教育", "購物", "雜項"),
    TransactionType.INCOME: ("薪資", "獎金", "投資收益", "兼職", "其他"),
    TransactionType.TRANSFER: ("轉帳",),
}


def categories_for(transaction_type: TransactionType) -> list[str]:
    """Ordered category labels offered for a transaction type."""
    return list(CATEGORIES[TransactionType(transaction_type)])


def default_category(transaction_type: TransactionType) -> str:
    """Category preselected when a form switches to this type."""
    return CATEGORIES[TransactionType(transaction_type)][0]


# =============================================================================
# RECORDS
# =============================================================================

class StoredRecord(BaseModel):
    """
    Base for records persisted in the per-user store.

    The id is assigned by the store on creation, so it is optional
    for records that have not been written yet.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: Optional[str] = Field(
        default=None,
        description="Store-assigned document ID"
    )

    def to_document(self) -> dict[str, Any]:
        """JSON-safe document body as written to the store (no id)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]):
        """Rebuild a record from a stored document."""
        return cls.model_validate({**data, "id": doc_id})


class Account(StoredRecord):
    """
    A bank, cash, investment or credit account.

    CRITICAL: balance is denormalized. It is never recomputed from
    transactions; it only moves when a transaction is posted against
    this account or the user edits it directly.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display label"
    )
    type: AccountType = Field(
        default=AccountType.BANK,
        description="Account classification"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Signed balance in the account's currency"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=1,
        max_length=10,
        description="Currency code (not validated beyond presence)"
    )


class StockHolding(StoredRecord):
    """A position in one security. Not linked to any account."""

    symbol: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Exchange ticker, e.g. 2330.TW"
    )
    name: str = Field(
        default="",
        max_length=200,
        description="Security name"
    )
    shares: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Number of shares held"
    )
    avg_price: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Cost basis per share"
    )
    current_price: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Last known market price"
    )
    last_updated: dt.datetime = Field(
        default_factory=_utcnow,
        description="When current_price was last refreshed"
    )

    @field_validator('symbol')
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        """Tickers are matched case-insensitively, so store them uppercase."""
        return v.upper()

    def with_price(self, price: Decimal, updated_at: Optional[dt.datetime] = None) -> "StockHolding":
        """Copy of this holding with a refreshed market price."""
        return self.model_copy(
            update={
                "current_price": price,
                "last_updated": updated_at or _utcnow(),
            }
        )


class Transaction(StoredRecord):
    """
    One income, expense or transfer event.

    account_id is a weak reference: the account may have been deleted,
    in which case the transaction is shown against a fallback label.
    Category is drawn from CATEGORIES in the UI but any string is valid.
    """

    account_id: str = Field(
        ...,
        description="ID of the account this transaction belongs to"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Income, expense or transfer"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative magnitude"
    )
    category: str = Field(
        default="",
        max_length=100,
        description="Category label"
    )
    date: dt.date = Field(
        default_factory=dt.date.today,
        description="Calendar date of the transaction"
    )
    note: str = Field(
        default="",
        max_length=1000,
        description="Free-text note"
    )

    @property
    def month_key(self) -> str:
        """Year-month key (YYYY-MM) used for cash-flow grouping."""
        return self.date.isoformat()[:7]
