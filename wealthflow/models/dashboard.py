"""
Derived Dashboard Models

Values computed by the aggregation engine. None of these are stored;
they are rebuilt from the three collections on every snapshot.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class HoldingPerformance(BaseModel):
    """Per-holding figures shown in the stocks table."""
    model_config = ConfigDict(frozen=True)

    market_value: Decimal
    cost: Decimal
    profit: Decimal
    profit_percent: Decimal = Field(
        description="profit / cost * 100, exactly 0 when cost is 0"
    )


class CategoryTotal(BaseModel):
    """One slice of the expense pie chart."""
    model_config = ConfigDict(frozen=True)

    category: str
    total: Decimal


class MonthlyCashflow(BaseModel):
    """Income and expense totals for one YYYY-MM month."""
    model_config = ConfigDict(frozen=True)

    month: str = Field(pattern=r"^\d{4}-\d{2}$")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class DashboardSummary(BaseModel):
    """
    Everything the dashboard shows.

    NOTE: cash and totals sum balances nominally across currencies.
    There is no currency conversion.
    """
    model_config = ConfigDict(frozen=True)

    total_assets: Decimal = Decimal("0")
    total_cash_balance: Decimal = Decimal("0")
    stock_market_value: Decimal = Decimal("0")
    stock_cost: Decimal = Decimal("0")
    unrealized_pl: Decimal = Decimal("0")
    expense_breakdown: list[CategoryTotal] = Field(default_factory=list)
    monthly_cashflow: list[MonthlyCashflow] = Field(default_factory=list)

    @property
    def expense_by_category(self) -> dict[str, Decimal]:
        return {row.category: row.total for row in self.expense_breakdown}
