"""
Audit Logger

DESIGN DECISION: Every mutation and auth action is logged.
This provides:
1. Traceability of balance changes
2. Debugging capability (e.g. why a balance was not updated)
3. A user-visible activity history

The audit logger:
- Is async to match the store calls around it
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from wealthflow.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from wealthflow.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central activity logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An activity log storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("wealthflow.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                stored = await self._storage.append_event(event)
            except Exception as e:
                stored = False
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
            if not stored:
                self._logger.warning("audit_event_not_persisted", event_id=str(event.event_id))
            return stored

        return True

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: Optional[str],
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a create / update / delete of an account or holding."""
        await self.log(AuditEventBuilder.record_changed(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_transaction_posted(
        self,
        user_id: str,
        transaction_id: str,
        account_id: str,
        transaction_type: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new transaction."""
        await self.log(AuditEventBuilder.transaction_posted(
            user_id=user_id,
            transaction_id=transaction_id,
            account_id=account_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_balance_updated(
        self,
        user_id: str,
        account_id: str,
        old_balance: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a balance change caused by a transaction."""
        await self.log(AuditEventBuilder.balance_updated(
            user_id=user_id,
            account_id=account_id,
            old_balance=old_balance,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_balance_update_skipped(
        self,
        user_id: str,
        account_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log that a posting left every balance alone."""
        await self.log(AuditEventBuilder.balance_update_skipped(
            user_id=user_id,
            account_id=account_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_prices_refreshed(
        self,
        user_id: str,
        symbols: list[str],
        updated: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.prices_refreshed(user_id, symbols, updated))

    async def log_price_refresh_failed(
        self,
        user_id: Optional[str],
        error_message: str,
    ) -> None:
        await self.log(AuditEventBuilder.price_refresh_failed(user_id, error_message))

    async def log_user_registered(self, user_id: str, email: str) -> None:
        await self.log(AuditEventBuilder.user_registered(user_id, email))

    async def log_user_signed_in(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.user_signed_in(user_id))

    async def log_user_signed_out(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.user_signed_out(user_id))

    async def log_auth_failed(self, email: str, action: str, error_message: str) -> None:
        """Log a failed sign-in or registration."""
        await self.log(AuditEventBuilder.auth_failed(email, action, error_message))

    async def log_default_account_seeded(self, user_id: str, account_name: str) -> None:
        await self.log(AuditEventBuilder.default_account_seeded(user_id, account_name))

    async def log_store_write_failed(
        self,
        user_id: Optional[str],
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed write to the record store."""
        await self.log(AuditEventBuilder.store_write_failed(
            user_id=user_id,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g. posting a transaction)
    and pass it through all subsequent operations.
    """
    return uuid4()
