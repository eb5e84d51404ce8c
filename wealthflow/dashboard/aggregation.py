"""
Dashboard Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and stateless.
Every function here is a pure single pass over collections the
session already holds in memory. Nothing is cached between
snapshots; the dashboard is recomputed in full on every change.

Sums use Decimal so totals are exact. Balances in different
currencies are added nominally (no conversion).
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from wealthflow.models.dashboard import (
    CategoryTotal,
    DashboardSummary,
    HoldingPerformance,
    MonthlyCashflow,
)
from wealthflow.models.finance import (
    UNKNOWN_ACCOUNT_LABEL,
    Account,
    StockHolding,
    Transaction,
    TransactionType,
)


ZERO = Decimal("0")


# =============================================================================
# ACCOUNTS AND HOLDINGS
# =============================================================================

def total_cash_balance(accounts: Iterable[Account]) -> Decimal:
    """Sum of all account balances."""
    return sum((account.balance for account in accounts), ZERO)


def stock_market_value(holdings: Iterable[StockHolding]) -> Decimal:
    """Sum of shares x current price."""
    return sum((h.shares * h.current_price for h in holdings), ZERO)


def stock_cost(holdings: Iterable[StockHolding]) -> Decimal:
    """Sum of shares x average price."""
    return sum((h.shares * h.avg_price for h in holdings), ZERO)


def unrealized_pl(holdings: Sequence[StockHolding]) -> Decimal:
    """Market value minus cost basis."""
    return stock_market_value(holdings) - stock_cost(holdings)


def total_assets(
    accounts: Iterable[Account],
    holdings: Iterable[StockHolding],
) -> Decimal:
    """Cash balances plus stock market value."""
    return total_cash_balance(accounts) + stock_market_value(holdings)


def holding_performance(holding: StockHolding) -> HoldingPerformance:
    """
    Figures for one row of the holdings table.

    A zero cost basis (zero shares or zero average price) yields a
    profit percent of exactly 0 rather than a division error.
    """
    market_value = holding.shares * holding.current_price
    cost = holding.shares * holding.avg_price
    profit = market_value - cost
    profit_percent = ZERO if cost == 0 else profit / cost * 100
    return HoldingPerformance(
        market_value=market_value,
        cost=cost,
        profit=profit,
        profit_percent=profit_percent,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

def expense_breakdown(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Expense totals per category, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for txn in transactions:
        if txn.type != TransactionType.EXPENSE:
            continue
        totals[txn.category] = totals.get(txn.category, ZERO) + txn.amount
    return [CategoryTotal(category=cat, total=total) for cat, total in totals.items()]


def expense_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Mapping of category label to total expense. Income is excluded."""
    return {row.category: row.total for row in expense_breakdown(transactions)}


def monthly_cashflow(transactions: Iterable[Transaction]) -> list[MonthlyCashflow]:
    """
    Income and expense per YYYY-MM month, oldest month first.

    Transfers still open a month row but add to neither column.
    """
    flows: dict[str, dict[str, Decimal]] = {}
    for txn in transactions:
        month = flows.setdefault(txn.month_key, {"income": ZERO, "expense": ZERO})
        if txn.type == TransactionType.INCOME:
            month["income"] += txn.amount
        elif txn.type == TransactionType.EXPENSE:
            month["expense"] += txn.amount

    return [
        MonthlyCashflow(month=key, **flows[key])
        for key in sorted(flows)
    ]


def summarize(
    accounts: Sequence[Account],
    holdings: Sequence[StockHolding],
    transactions: Sequence[Transaction],
) -> DashboardSummary:
    """Every dashboard figure for one set of snapshots."""
    cash = total_cash_balance(accounts)
    value = stock_market_value(holdings)
    cost = stock_cost(holdings)
    return DashboardSummary(
        total_assets=cash + value,
        total_cash_balance=cash,
        stock_market_value=value,
        stock_cost=cost,
        unrealized_pl=value - cost,
        expense_breakdown=expense_breakdown(transactions),
        monthly_cashflow=monthly_cashflow(transactions),
    )


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def sort_for_display(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first; same-day transactions keep their store order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def filter_transactions(
    transactions: Iterable[Transaction],
    transaction_type: Optional[TransactionType] = None,
) -> list[Transaction]:
    """All transactions, or only those of one type."""
    if transaction_type is None:
        return list(transactions)
    return [t for t in transactions if t.type == transaction_type]


def account_label(account_id: str, accounts: Iterable[Account]) -> str:
    """Account name for display, or a fallback for deleted accounts."""
    for account in accounts:
        if account.id == account_id:
            return account.name
    return UNKNOWN_ACCOUNT_LABEL
