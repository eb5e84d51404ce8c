"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the per-user
record store. This allows us to:
1. Swap Google Sheets for a document database later
2. Use in-memory storage for testing and local runs
3. Keep ledger and dashboard logic decoupled from storage

The store deals in plain documents (id + JSON-safe dict). Converting
them to records is the caller's job.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from wealthflow.models.audit import AuditEvent
from wealthflow.sync.channel import (
    Collection,
    CollectionSnapshot,
    SnapshotChannel,
    SnapshotHandler,
    StoredDocument,
    Subscription,
)


class BatchWrite(BaseModel):
    """
    One write inside a batch.

    doc_id None means "create with a new id"; otherwise the document
    with that id is fully replaced (or created if missing).
    """
    model_config = ConfigDict(frozen=True)

    collection: Collection
    doc_id: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)


class RecordStoreInterface(ABC):
    """
    Abstract interface for the per-user record store.

    Any storage implementation must implement these methods.
    Every collection is addressed by (user_id, collection), so one
    user can never read or write another user's documents.
    """

    @abstractmethod
    async def subscribe(
        self,
        user_id: str,
        collection: Collection,
        handler: SnapshotHandler,
    ) -> Subscription:
        """
        Subscribe to a collection.

        The handler receives the current snapshot immediately and a
        fresh full snapshot after every change.
        """
        pass

    @abstractmethod
    async def list_documents(
        self,
        user_id: str,
        collection: Collection,
    ) -> list[StoredDocument]:
        """Current documents of a collection, in insertion order."""
        pass

    @abstractmethod
    async def create_document(
        self,
        user_id: str,
        collection: Collection,
        data: dict[str, Any],
    ) -> str:
        """
        Create a document.

        Returns:
            The store-assigned id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def upsert_document(
        self,
        user_id: str,
        collection: Collection,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        """
        Fully replace the document with this id (create it if missing).

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_document(
        self,
        user_id: str,
        collection: Collection,
        doc_id: str,
    ) -> bool:
        """
        Delete a document by id.

        Returns:
            True if a document was deleted, False if none matched
        """
        pass

    @abstractmethod
    async def batch_write(
        self,
        user_id: str,
        writes: list[BatchWrite],
    ) -> list[str]:
        """
        Apply several writes as a single unit.

        Subsequent reads see either none or all of the writes.

        Returns:
            The id of each written document, in order
        """
        pass


class SnapshotPublishingStore(RecordStoreInterface):
    """
    Shared subscribe/publish behaviour for stores without native push.

    Subclasses call _publish() after every committed mutation; the
    snapshot is a fresh read of the whole collection.
    """

    def __init__(self, channel: Optional[SnapshotChannel] = None):
        self._channel = channel or SnapshotChannel()

    @property
    def channel(self) -> SnapshotChannel:
        return self._channel

    async def subscribe(
        self,
        user_id: str,
        collection: Collection,
        handler: SnapshotHandler,
    ) -> Subscription:
        collection = Collection(collection)
        subscription = self._channel.subscribe(user_id, collection, handler)
        try:
            snapshot = await self._snapshot(user_id, collection)
        except StorageError:
            subscription.unsubscribe()
            raise
        self._channel.deliver(handler, snapshot)
        return subscription

    async def refresh(self, user_id: str, collection: Collection) -> CollectionSnapshot:
        """Re-read a collection and push it to subscribers."""
        return await self._publish(user_id, Collection(collection))

    async def _snapshot(self, user_id: str, collection: Collection) -> CollectionSnapshot:
        documents = await self.list_documents(user_id, collection)
        return CollectionSnapshot(
            user_id=user_id,
            collection=collection,
            documents=tuple(documents),
        )

    async def _publish(self, user_id: str, collection: Collection) -> CollectionSnapshot:
        snapshot = await self._snapshot(user_id, collection)
        self._channel.publish(snapshot)
        return snapshot


class AuditStorageInterface(ABC):
    """
    Abstract interface for activity log storage.

    The activity log is append-only - we never delete or modify it.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Most recent events, newest first.

        Args:
            user_id: Only events for this user when given
            limit: Maximum number of events to return
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
