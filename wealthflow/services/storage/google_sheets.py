"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. Users can view their accounts and transactions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- No push notifications: we publish a fresh snapshot after every write
  and on refresh(), instead of listening for remote changes
- A batch touching several collections is one API call per worksheet,
  so it is only atomic per collection
- Limited query capabilities (we filter by user in Python)

Each collection lives in its own worksheet; column A is the document
id and column B the owning user's id.
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from wealthflow.config import get_settings
from wealthflow.config.settings import GoogleSheetsSettings
from wealthflow.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventType,
    AuditSeverity,
)
from wealthflow.services.storage.interface import (
    AuditStorageInterface,
    BatchWrite,
    ConnectionError,
    NotFoundError,
    SnapshotPublishingStore,
    StorageError,
)
from wealthflow.sync.channel import Collection, SnapshotChannel, StoredDocument


# Column mappings per collection
ACCOUNT_COLUMNS = ["id", "user_id", "name", "type", "balance", "currency"]
STOCK_COLUMNS = [
    "id",
    "user_id",
    "symbol",
    "name",
    "shares",
    "avg_price",
    "current_price",
    "last_updated",
]
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "account_id",
    "type",
    "amount",
    "category",
    "date",
    "note",
]

COLLECTION_COLUMNS = {
    Collection.ACCOUNTS: ACCOUNT_COLUMNS,
    Collection.STOCKS: STOCK_COLUMNS,
    Collection.TRANSACTIONS: TRANSACTION_COLUMNS,
}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise NotFoundError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with a header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_collection_sheet(self, collection: Collection) -> gspread.Worksheet:
        """Worksheet holding one collection for all users."""
        titles = {
            Collection.ACCOUNTS: self._settings.accounts_sheet_name,
            Collection.STOCKS: self._settings.stocks_sheet_name,
            Collection.TRANSACTIONS: self._settings.transactions_sheet_name,
        }
        collection = Collection(collection)
        return self.get_worksheet(titles[collection], COLLECTION_COLUMNS[collection])

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the activity log worksheet."""
        return self.get_worksheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for the log
        )


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class GoogleSheetsRecordStore(SnapshotPublishingStore):
    """
    Google Sheets implementation of the record store.

    Documents are stored one per row. Cells hold the JSON-mode
    string form of each field; the record models parse them back.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        channel: Optional[SnapshotChannel] = None,
    ):
        super().__init__(channel)
        self._client = client or GoogleSheetsClient()

    def _document_to_row(
        self,
        collection: Collection,
        user_id: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> list[str]:
        """Convert a document to a spreadsheet row."""
        columns = COLLECTION_COLUMNS[collection]
        return [doc_id, user_id] + [_cell(data.get(col)) for col in columns[2:]]

    def _row_to_document(self, collection: Collection, row: list) -> StoredDocument:
        """Convert a spreadsheet row to a document."""
        columns = COLLECTION_COLUMNS[collection]

        # Handle missing trailing columns gracefully
        def safe_get(index: int) -> str:
            try:
                return row[index]
            except IndexError:
                return ""

        return StoredDocument(
            id=safe_get(0),
            data={col: safe_get(idx) for idx, col in enumerate(columns) if idx >= 2},
        )

    def _row_range(self, collection: Collection, row_index: int) -> str:
        width = len(COLLECTION_COLUMNS[collection])
        return f"{rowcol_to_a1(row_index, 1)}:{rowcol_to_a1(row_index, width)}"

    @staticmethod
    def _row_indexes(all_rows: list[list], user_id: str) -> dict[str, int]:
        """Map of document id to 1-based sheet row for one user."""
        indexes = {}
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if len(row) > 1 and row[0] and row[1] == user_id:
                indexes[row[0]] = idx
        return indexes

    async def list_documents(
        self,
        user_id: str,
        collection: Collection,
    ) -> list[StoredDocument]:
        collection = Collection(collection)
        try:
            sheet = self._client.get_collection_sheet(collection)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to read {collection.value}: {e}")

        return [
            self._row_to_document(collection, row)
            for row in all_rows
            if len(row) > 1 and row[0] and row[1] == user_id
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_collection(
        self,
        collection: Collection,
        user_id: str,
        writes: list[tuple[str, dict[str, Any]]],
    ) -> None:
        """Upsert (doc_id, data) pairs into one worksheet in two API calls at most."""
        try:
            sheet = self._client.get_collection_sheet(collection)
            indexes = self._row_indexes(sheet.get_all_values(), user_id)

            updates = []
            new_rows = []
            for doc_id, data in writes:
                row = self._document_to_row(collection, user_id, doc_id, data)
                if doc_id in indexes:
                    updates.append({
                        "range": self._row_range(collection, indexes[doc_id]),
                        "values": [row],
                    })
                else:
                    new_rows.append(row)

            if updates:
                sheet.batch_update(updates, value_input_option="RAW")
            if new_rows:
                sheet.append_rows(new_rows, value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to write {collection.value}: {e}")

    async def create_document(
        self,
        user_id: str,
        collection: Collection,
        data: dict[str, Any],
    ) -> str:
        collection = Collection(collection)
        doc_id = uuid4().hex
        self._write_collection(collection, user_id, [(doc_id, data)])
        await self._publish(user_id, collection)
        return doc_id

    async def upsert_document(
        self,
        user_id: str,
        collection: Collection,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        collection = Collection(collection)
        self._write_collection(collection, user_id, [(doc_id, data)])
        await self._publish(user_id, collection)

    async def delete_document(
        self,
        user_id: str,
        collection: Collection,
        doc_id: str,
    ) -> bool:
        collection = Collection(collection)
        try:
            sheet = self._client.get_collection_sheet(collection)
            indexes = self._row_indexes(sheet.get_all_values(), user_id)
            if doc_id not in indexes:
                return False
            sheet.delete_rows(indexes[doc_id])
        except Exception as e:
            raise StorageError(f"Failed to delete from {collection.value}: {e}")

        await self._publish(user_id, collection)
        return True

    async def batch_write(
        self,
        user_id: str,
        writes: list[BatchWrite],
    ) -> list[str]:
        ids = []
        grouped: dict[Collection, list[tuple[str, dict[str, Any]]]] = {}
        for write in writes:
            doc_id = write.doc_id or uuid4().hex
            ids.append(doc_id)
            grouped.setdefault(write.collection, []).append((doc_id, write.data))

        for collection, pairs in grouped.items():
            self._write_collection(collection, user_id, pairs)
        for collection in grouped:
            await self._publish(user_id, collection)
        return ids


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of the activity log.

    Events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an event. Failures are reported, never raised."""
        try:
            self._append_row(event.to_sheets_row())
            return True
        except Exception:
            # The AuditLogger records the failure locally
            return False

    async def get_recent_events(
        self,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get activity log: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            if user_id is not None and (len(row) < 5 or row[4] != user_id):
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue  # Skip malformed rows

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
