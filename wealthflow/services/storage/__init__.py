"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the
per-user record store and the activity log. Google Sheets is the hosted
backend; the in-memory backend serves tests and local runs.
"""

from wealthflow.services.storage.interface import (
    AuditStorageInterface,
    BatchWrite,
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    SnapshotPublishingStore,
    StorageError,
)
from wealthflow.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from wealthflow.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BatchWrite",
    "RecordStoreInterface",
    "SnapshotPublishingStore",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
