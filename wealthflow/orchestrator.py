"""
Main Orchestrator for WealthFlow

This module ties together all the components and defines the
end-to-end flows for:
1. Auth (sign in / register + default account seed / sign out)
2. Record changes (accounts, holdings, transactions + balance posting)
3. Price refresh (Gemini -> bulk replace of holdings)
4. The reactive session (store snapshots -> in-memory state -> dashboard)

DESIGN DECISION: The orchestrator is the composition root.
Store, auth and AI clients are passed in explicitly; nothing in the
ledger or dashboard code reaches for a global connection.

Local state never changes optimistically. Writes go to the store,
and the session only updates when the store emits the next snapshot,
so a failed write simply never shows up.
"""

from typing import Callable, Optional, Sequence
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from wealthflow.agents import PriceRefreshAgent
from wealthflow.audit import AuditLogger, create_correlation_id
from wealthflow.config import get_settings
from wealthflow.dashboard import sort_for_display, summarize
from wealthflow.ledger import PostingResult, find_account, post_transaction
from wealthflow.models.audit import AuditEventType
from wealthflow.models.dashboard import DashboardSummary
from wealthflow.models.finance import (
    DEFAULT_ACCOUNT_NAME,
    DEFAULT_CURRENCY,
    Account,
    AccountType,
    StockHolding,
    Transaction,
    TransactionType,
)
from wealthflow.models.user import UserIdentity
from wealthflow.services.auth import (
    AuthenticationError,
    AuthProviderInterface,
    GoogleSheetsAuthProvider,
    InMemoryAuthProvider,
)
from wealthflow.services.storage import (
    BatchWrite,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    RecordStoreInterface,
    StorageError,
)
from wealthflow.sync import Collection, CollectionSnapshot, Subscription


logger = structlog.get_logger(__name__)


class AuthOutcome(BaseModel):
    """Result of a sign-in or registration attempt."""
    model_config = ConfigDict(frozen=True)

    user: Optional[UserIdentity] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user is not None and self.error_message is None


class AuthFlow:
    """
    Orchestrates sign-in, registration and sign-out for one visitor.

    Auth errors are the one failure class shown to the user, so they
    come back as AuthOutcome.error_message instead of raising.

    The signed-in user lives on this object, not on the provider.
    Build one flow per browser session with new_session(); the provider
    and store behind it can be shared.
    """

    def __init__(
        self,
        auth_provider: AuthProviderInterface,
        record_store: RecordStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth_provider
        self._store = record_store
        self._audit_logger = audit_logger
        self._current_user: Optional[UserIdentity] = None

    @property
    def current_user(self) -> Optional[UserIdentity]:
        return self._current_user

    def new_session(self) -> "AuthFlow":
        """A flow over the same provider and store with nobody signed in."""
        return AuthFlow(self._auth, self._store, self._audit_logger)

    async def sign_in(self, email: str, password: str) -> AuthOutcome:
        try:
            user = await self._auth.sign_in(email, password)
        except AuthenticationError as e:
            if self._audit_logger:
                await self._audit_logger.log_auth_failed(email, "sign_in", str(e))
            return AuthOutcome(error_message=str(e))

        self._current_user = user
        if self._audit_logger:
            await self._audit_logger.log_user_signed_in(user.id)
        return AuthOutcome(user=user)

    async def register(self, email: str, password: str, display_name: str) -> AuthOutcome:
        """
        Register a user, sign them in, then seed their default cash account.

        Only the single default account is created: no demo
        transactions or holdings.
        """
        try:
            user = await self._auth.register(email, password, display_name)
        except AuthenticationError as e:
            if self._audit_logger:
                await self._audit_logger.log_auth_failed(email, "register", str(e))
            return AuthOutcome(error_message=str(e))

        self._current_user = user
        if self._audit_logger:
            await self._audit_logger.log_user_registered(user.id, user.email)

        try:
            await self.seed_default_account(user.id)
        except StorageError as e:
            # The user exists either way; they can add an account by hand
            if self._audit_logger:
                await self._audit_logger.log_store_write_failed(user.id, "seed_default_account", str(e))

        return AuthOutcome(user=user)

    async def seed_default_account(self, user_id: str) -> str:
        """Create the one account every new user starts with."""
        account = Account(
            name=DEFAULT_ACCOUNT_NAME,
            type=AccountType.CASH,
            balance=0,
            currency=DEFAULT_CURRENCY,
        )
        [account_id] = await self._store.batch_write(
            user_id,
            [BatchWrite(collection=Collection.ACCOUNTS, data=account.to_document())],
        )
        if self._audit_logger:
            await self._audit_logger.log_default_account_seeded(user_id, account.name)
        return account_id

    async def sign_out(self) -> None:
        user = self._current_user
        self._current_user = None
        if user and self._audit_logger:
            await self._audit_logger.log_user_signed_out(user.id)


class FinanceFlow:
    """
    Orchestrates every write to a user's records.

    All operations are scoped by user_id. Store failures are logged
    and re-raised as StorageError for the UI to report.
    """

    def __init__(
        self,
        record_store: RecordStoreInterface,
        price_agent: Optional[PriceRefreshAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = record_store
        self._price_agent = price_agent
        self._audit_logger = audit_logger

    async def _store_failed(
        self,
        user_id: str,
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_store_write_failed(
                user_id, operation, str(error), correlation_id
            )

    async def _audit_change(
        self,
        event_type: AuditEventType,
        user_id: str,
        entity_type: str,
        entity_id: Optional[str],
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                event_type, user_id, entity_type, entity_id, description, details
            )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def add_account(self, user_id: str, account: Account) -> Account:
        try:
            account_id = await self._store.create_document(
                user_id, Collection.ACCOUNTS, account.to_document()
            )
        except StorageError as e:
            await self._store_failed(user_id, "add_account", e)
            raise

        await self._audit_change(
            AuditEventType.ACCOUNT_CREATED, user_id, "account", account_id,
            f"Account created: {account.name}",
        )
        return account.model_copy(update={"id": account_id})

    async def edit_account(self, user_id: str, account: Account) -> Account:
        """Fully replace an account with the values the caller supplies."""
        if not account.id:
            raise ValueError("Cannot edit an account that has no id")
        try:
            await self._store.upsert_document(
                user_id, Collection.ACCOUNTS, account.id, account.to_document()
            )
        except StorageError as e:
            await self._store_failed(user_id, "edit_account", e)
            raise

        await self._audit_change(
            AuditEventType.ACCOUNT_UPDATED, user_id, "account", account.id,
            f"Account updated: {account.name}",
            {"balance": str(account.balance)},
        )
        return account

    async def delete_account(self, user_id: str, account_id: str) -> bool:
        """Delete an account. Its transactions are kept and become orphaned."""
        try:
            deleted = await self._store.delete_document(user_id, Collection.ACCOUNTS, account_id)
        except StorageError as e:
            await self._store_failed(user_id, "delete_account", e)
            raise

        if deleted:
            await self._audit_change(
                AuditEventType.ACCOUNT_DELETED, user_id, "account", account_id,
                "Account deleted",
            )
        return deleted

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def add_transaction(
        self,
        user_id: str,
        transaction: Transaction,
        accounts: Sequence[Account],
    ) -> PostingResult:
        """
        Record a transaction and move its account's balance.

        The transaction is always written. The balance update uses the
        caller's account snapshot and is skipped silently when the
        account is not in it (or for transfers).
        """
        correlation_id = create_correlation_id()
        result = post_transaction(transaction, accounts)

        try:
            transaction_id = await self._store.create_document(
                user_id, Collection.TRANSACTIONS, transaction.to_document()
            )
        except StorageError as e:
            await self._store_failed(user_id, "add_transaction", e, correlation_id)
            raise

        posted = transaction.model_copy(update={"id": transaction_id})
        if self._audit_logger:
            await self._audit_logger.log_transaction_posted(
                user_id=user_id,
                transaction_id=transaction_id,
                account_id=transaction.account_id,
                transaction_type=transaction.type.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )

        if result.updated_account is None:
            if self._audit_logger:
                reason = (
                    "transfers have no balance effect"
                    if transaction.type == TransactionType.TRANSFER
                    else "account not found"
                )
                await self._audit_logger.log_balance_update_skipped(
                    user_id, transaction.account_id, reason, correlation_id
                )
            return result.model_copy(update={"transaction": posted})

        updated = result.updated_account
        try:
            await self._store.upsert_document(
                user_id, Collection.ACCOUNTS, updated.id, updated.to_document()
            )
        except StorageError as e:
            await self._store_failed(user_id, "update_balance", e, correlation_id)
            raise

        if self._audit_logger:
            previous = find_account(updated.id, accounts)
            await self._audit_logger.log_balance_updated(
                user_id=user_id,
                account_id=updated.id,
                old_balance=str(previous.balance) if previous else "",
                new_balance=str(updated.balance),
                correlation_id=correlation_id,
            )
        return result.model_copy(update={"transaction": posted})

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    async def add_stock(self, user_id: str, holding: StockHolding) -> StockHolding:
        """Add a holding; last_updated is set to the creation time."""
        holding = holding.with_price(holding.current_price)
        try:
            stock_id = await self._store.create_document(
                user_id, Collection.STOCKS, holding.to_document()
            )
        except StorageError as e:
            await self._store_failed(user_id, "add_stock", e)
            raise

        await self._audit_change(
            AuditEventType.STOCK_ADDED, user_id, "stock", stock_id,
            f"Holding added: {holding.symbol}",
        )
        return holding.model_copy(update={"id": stock_id})

    async def delete_stock(self, user_id: str, stock_id: str) -> bool:
        try:
            deleted = await self._store.delete_document(user_id, Collection.STOCKS, stock_id)
        except StorageError as e:
            await self._store_failed(user_id, "delete_stock", e)
            raise

        if deleted:
            await self._audit_change(
                AuditEventType.STOCK_DELETED, user_id, "stock", stock_id,
                "Holding deleted",
            )
        return deleted

    async def update_stocks(self, user_id: str, holdings: Sequence[StockHolding]) -> None:
        """Replace a batch of holdings in one write."""
        writes = [
            BatchWrite(collection=Collection.STOCKS, doc_id=h.id, data=h.to_document())
            for h in holdings
            if h.id
        ]
        if not writes:
            return
        try:
            await self._store.batch_write(user_id, writes)
        except StorageError as e:
            await self._store_failed(user_id, "update_stocks", e)
            raise

        await self._audit_change(
            AuditEventType.STOCKS_REPLACED, user_id, "stock", None,
            f"{len(writes)} holdings replaced",
        )

    async def refresh_prices(
        self,
        user_id: str,
        holdings: Sequence[StockHolding],
    ) -> list[StockHolding]:
        """
        Best-effort price refresh.

        Returns the holdings as they should now look. Any failure,
        including the store write, leaves the stored holdings as they
        were and returns the input.
        """
        holdings = list(holdings)
        if self._price_agent is None or not holdings:
            return holdings

        refreshed = await self._price_agent.refresh_prices(holdings)
        changed = [new for old, new in zip(holdings, refreshed) if new is not old]
        if not changed:
            if self._audit_logger:
                await self._audit_logger.log_price_refresh_failed(user_id, "no prices returned")
            return holdings

        try:
            await self.update_stocks(user_id, changed)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_price_refresh_failed(user_id, str(e))
            return holdings

        if self._audit_logger:
            await self._audit_logger.log_prices_refreshed(
                user_id,
                symbols=[h.symbol for h in holdings],
                updated=[h.symbol for h in changed],
            )
        return refreshed


SessionListener = Callable[["FinanceSession", Collection], None]


class FinanceSession:
    """
    Live view of one user's records.

    Subscribes to the three collections and, on every snapshot,
    replaces the matching in-memory tuple and recomputes the
    dashboard summary from scratch. Snapshots may arrive in any
    order across collections.
    """

    _MODELS = {
        Collection.ACCOUNTS: Account,
        Collection.STOCKS: StockHolding,
        Collection.TRANSACTIONS: Transaction,
    }

    def __init__(self, user_id: str, record_store: RecordStoreInterface):
        self._user_id = user_id
        self._store = record_store
        self._subscriptions: list[Subscription] = []
        self._listeners: list[SessionListener] = []

        self._accounts: tuple[Account, ...] = ()
        self._stocks: tuple[StockHolding, ...] = ()
        self._transactions: tuple[Transaction, ...] = ()
        self._summary = DashboardSummary()

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def accounts(self) -> tuple[Account, ...]:
        return self._accounts

    @property
    def stocks(self) -> tuple[StockHolding, ...]:
        return self._stocks

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        """Newest first."""
        return self._transactions

    @property
    def summary(self) -> DashboardSummary:
        return self._summary

    @property
    def is_running(self) -> bool:
        return bool(self._subscriptions)

    def on_change(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        if self._subscriptions:
            return
        try:
            for collection in Collection:
                self._subscriptions.append(
                    await self._store.subscribe(self._user_id, collection, self.apply_snapshot)
                )
        except StorageError:
            self.stop()
            raise

    def stop(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def apply_snapshot(self, snapshot: CollectionSnapshot) -> None:
        """Replace one collection and recompute derived state."""
        if snapshot.user_id != self._user_id:
            return

        model = self._MODELS[snapshot.collection]
        records = []
        for doc in snapshot.documents:
            try:
                records.append(model.from_document(doc.id, doc.data))
            except ValidationError as e:
                logger.warning(
                    "malformed_document_skipped",
                    collection=snapshot.collection.value,
                    doc_id=doc.id,
                    error=str(e),
                )

        if snapshot.collection == Collection.ACCOUNTS:
            self._accounts = tuple(records)
        elif snapshot.collection == Collection.STOCKS:
            self._stocks = tuple(records)
        else:
            self._transactions = tuple(sort_for_display(records))

        self._summary = summarize(self._accounts, self._stocks, self._transactions)
        for listener in list(self._listeners):
            listener(self, snapshot.collection)


def create_app_components(
    use_storage: bool = True,
) -> tuple[AuthFlow, FinanceFlow, RecordStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured hosted backend.
                    Set to False for in-memory storage and auth.

    Returns:
        (auth_flow, finance_flow, record_store)
    """
    settings = get_settings()
    app_settings = settings.app

    record_store = None
    auth_provider = None
    audit_logger = None

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            record_store = GoogleSheetsRecordStore(sheets_client)
            auth_provider = GoogleSheetsAuthProvider(
                sheets_client,
                min_password_length=app_settings.min_password_length,
            )
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            record_store = None

    if record_store is None:
        record_store = InMemoryRecordStore()
        auth_provider = InMemoryAuthProvider(
            min_password_length=app_settings.min_password_length,
        )
        audit_logger = AuditLogger()  # Local-only logging

    auth_flow = AuthFlow(
        auth_provider=auth_provider,
        record_store=record_store,
        audit_logger=audit_logger,
    )
    finance_flow = FinanceFlow(
        record_store=record_store,
        price_agent=PriceRefreshAgent(settings.gemini),
        audit_logger=audit_logger,
    )
    return auth_flow, finance_flow, record_store
