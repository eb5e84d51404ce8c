"""
Data Models Package

This package contains all Pydantic models used in WealthFlow.
All data flowing through the system must conform to these schemas.
"""

from wealthflow.models.finance import (
    CATEGORIES,
    DEFAULT_ACCOUNT_NAME,
    DEFAULT_CURRENCY,
    UNKNOWN_ACCOUNT_LABEL,
    Account,
    AccountType,
    StockHolding,
    StoredRecord,
    Transaction,
    TransactionType,
    categories_for,
    default_category,
)
from wealthflow.models.dashboard import (
    CategoryTotal,
    DashboardSummary,
    HoldingPerformance,
    MonthlyCashflow,
)
from wealthflow.models.user import UserIdentity
from wealthflow.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "CATEGORIES",
    "DEFAULT_ACCOUNT_NAME",
    "DEFAULT_CURRENCY",
    "UNKNOWN_ACCOUNT_LABEL",
    "Account",
    "AccountType",
    "StockHolding",
    "StoredRecord",
    "Transaction",
    "TransactionType",
    "categories_for",
    "default_category",
    # Derived models
    "CategoryTotal",
    "DashboardSummary",
    "HoldingPerformance",
    "MonthlyCashflow",
    # Users
    "UserIdentity",
    # Audit models
    "AUDIT_COLUMNS",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
