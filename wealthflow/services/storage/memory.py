"""
In-Memory Storage

Dict-backed implementations of the storage interfaces. Used by the
test suite and for running the app without Google credentials.
Data lives only as long as the process.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from wealthflow.models.audit import AuditEvent
from wealthflow.services.storage.interface import (
    AuditStorageInterface,
    BatchWrite,
    SnapshotPublishingStore,
)
from wealthflow.sync.channel import Collection, SnapshotChannel, StoredDocument


class InMemoryRecordStore(SnapshotPublishingStore):
    """Record store held in process memory."""

    def __init__(self, channel: Optional[SnapshotChannel] = None):
        super().__init__(channel)
        self._documents: dict[tuple[str, Collection], dict[str, dict[str, Any]]] = {}

    def _bucket(self, user_id: str, collection: Collection) -> dict[str, dict[str, Any]]:
        return self._documents.setdefault((user_id, Collection(collection)), {})

    async def list_documents(
        self,
        user_id: str,
        collection: Collection,
    ) -> list[StoredDocument]:
        return [
            StoredDocument(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._bucket(user_id, collection).items()
        ]

    async def create_document(
        self,
        user_id: str,
        collection: Collection,
        data: dict[str, Any],
    ) -> str:
        doc_id = uuid4().hex
        self._bucket(user_id, collection)[doc_id] = copy.deepcopy(data)
        await self._publish(user_id, Collection(collection))
        return doc_id

    async def upsert_document(
        self,
        user_id: str,
        collection: Collection,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        self._bucket(user_id, collection)[doc_id] = copy.deepcopy(data)
        await self._publish(user_id, Collection(collection))

    async def delete_document(
        self,
        user_id: str,
        collection: Collection,
        doc_id: str,
    ) -> bool:
        bucket = self._bucket(user_id, collection)
        if doc_id not in bucket:
            return False
        del bucket[doc_id]
        await self._publish(user_id, Collection(collection))
        return True

    async def batch_write(
        self,
        user_id: str,
        writes: list[BatchWrite],
    ) -> list[str]:
        ids = []
        touched: list[Collection] = []
        for write in writes:
            doc_id = write.doc_id or uuid4().hex
            self._bucket(user_id, write.collection)[doc_id] = copy.deepcopy(write.data)
            ids.append(doc_id)
            if write.collection not in touched:
                touched.append(write.collection)

        # One snapshot per collection, after every write has landed
        for collection in touched:
            await self._publish(user_id, collection)
        return ids


class InMemoryAuditStorage(AuditStorageInterface):
    """Activity log held in process memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(
        self,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if user_id is None or e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
