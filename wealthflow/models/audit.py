"""
Activity Models for WealthFlow

Every mutation and auth action produces an AuditEvent. Events are
logged locally through structlog and, when a sheet is configured,
appended to the user-visible activity log.

DESIGN DECISION: The activity log is append-only. We never delete or
modify events.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we record."""
    # Auth
    USER_REGISTERED = "user_registered"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"
    AUTH_FAILED = "auth_failed"
    DEFAULT_ACCOUNT_SEEDED = "default_account_seeded"

    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Transactions and balances
    TRANSACTION_POSTED = "transaction_posted"
    BALANCE_UPDATED = "balance_updated"
    BALANCE_UPDATE_SKIPPED = "balance_update_skipped"

    # Holdings
    STOCK_ADDED = "stock_added"
    STOCK_DELETED = "stock_deleted"
    STOCKS_REPLACED = "stocks_replaced"
    PRICES_REFRESHED = "prices_refreshed"
    PRICE_REFRESH_FAILED = "price_refresh_failed"

    # System
    STORE_WRITE_FAILED = "store_write_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class AuditEvent(BaseModel):
    """A single recorded event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - whose data, and which record
    user_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="account, stock, transaction or user"
    )
    entity_id: Optional[str] = None
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together the events of one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """Row in AUDIT_COLUMNS order."""
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, ensure_ascii=False, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_posted(user_id, txn_id, ...)
    """

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: Optional[str],
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=description,
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def transaction_posted(
        user_id: str,
        transaction_id: str,
        account_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_POSTED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type} of {amount} posted",
            details={
                "account_id": account_id,
                "type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def balance_updated(
        user_id: str,
        account_id: str,
        old_balance: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_UPDATED,
            user_id=user_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Balance moved from {old_balance} to {new_balance}",
            details={"old_balance": old_balance, "new_balance": new_balance},
        )

    @staticmethod
    def balance_update_skipped(
        user_id: str,
        account_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_UPDATE_SKIPPED,
            user_id=user_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Balance not updated: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def prices_refreshed(
        user_id: str,
        symbols: list[str],
        updated: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICES_REFRESHED,
            user_id=user_id,
            entity_type="stock",
            description=f"Prices refreshed for {len(updated)} of {len(symbols)} holdings",
            details={"requested": symbols, "updated": updated},
            is_user_action=True,
        )

    @staticmethod
    def price_refresh_failed(
        user_id: Optional[str],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICE_REFRESH_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="stock",
            description="Price refresh failed; holdings left unchanged",
            error_message=error_message,
        )

    @staticmethod
    def user_registered(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"User registered: {email}",
            is_user_action=True,
        )

    @staticmethod
    def user_signed_in(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User signed in",
            is_user_action=True,
        )

    @staticmethod
    def user_signed_out(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(email: str, action: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"{action} failed for {email}",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def default_account_seeded(user_id: str, account_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEFAULT_ACCOUNT_SEEDED,
            user_id=user_id,
            entity_type="account",
            description=f"Default account created: {account_name}",
        )

    @staticmethod
    def store_write_failed(
        user_id: Optional[str],
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Store write failed during {operation}",
            error_message=error_message,
        )
