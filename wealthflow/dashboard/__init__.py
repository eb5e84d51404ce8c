"""Dashboard aggregation package."""

from wealthflow.dashboard.aggregation import (
    account_label,
    expense_breakdown,
    expense_by_category,
    filter_transactions,
    holding_performance,
    monthly_cashflow,
    sort_for_display,
    stock_cost,
    stock_market_value,
    summarize,
    total_assets,
    total_cash_balance,
    unrealized_pl,
)

__all__ = [
    "account_label",
    "expense_breakdown",
    "expense_by_category",
    "filter_transactions",
    "holding_performance",
    "monthly_cashflow",
    "sort_for_display",
    "stock_cost",
    "stock_market_value",
    "summarize",
    "total_assets",
    "total_cash_balance",
    "unrealized_pl",
]
