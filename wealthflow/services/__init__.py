"""Services package."""

from wealthflow.services.auth import (
    AuthenticationError,
    AuthProviderInterface,
    DuplicateUserError,
    GoogleSheetsAuthProvider,
    InMemoryAuthProvider,
    InvalidCredentialsError,
    InvalidEmailError,
    WeakPasswordError,
)
from wealthflow.services.storage import (
    AuditStorageInterface,
    BatchWrite,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)

__all__ = [
    # Auth services
    "AuthenticationError",
    "AuthProviderInterface",
    "DuplicateUserError",
    "GoogleSheetsAuthProvider",
    "InMemoryAuthProvider",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "WeakPasswordError",
    # Storage services
    "AuditStorageInterface",
    "BatchWrite",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
]
