"""
Snapshot Channel

The record store pushes a full, immutable copy of a collection to
every subscriber whenever that collection changes. Consumers never
share a mutable cache with the store: each emission replaces what
they held before.

Snapshots are keyed by (user_id, collection). Nothing is promised
about ordering ACROSS collections; an accounts snapshot may arrive
before or after the transactions snapshot that references it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field


logger = structlog.get_logger(__name__)


class Collection(str, Enum):
    """The three per-user collections."""
    ACCOUNTS = "accounts"
    STOCKS = "stocks"
    TRANSACTIONS = "transactions"


class StoredDocument(BaseModel):
    """One document as held by the store: id plus body."""
    model_config = ConfigDict(frozen=True)

    id: str
    data: dict[str, Any] = Field(default_factory=dict)


class CollectionSnapshot(BaseModel):
    """Point-in-time copy of one user's collection, in store order."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    collection: Collection
    documents: tuple[StoredDocument, ...] = ()
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.documents)


SnapshotHandler = Callable[[CollectionSnapshot], None]


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() to stop updates."""

    def __init__(self, channel: "SnapshotChannel", key: tuple[str, Collection], handler: SnapshotHandler):
        self._channel = channel
        self._key = key
        self._handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._channel._remove(self._key, self._handler)
            self._active = False


class SnapshotChannel:
    """In-process fan-out of collection snapshots."""

    def __init__(self):
        self._subscribers: dict[tuple[str, Collection], list[SnapshotHandler]] = {}

    def subscribe(
        self,
        user_id: str,
        collection: Collection,
        handler: SnapshotHandler,
    ) -> Subscription:
        key = (user_id, Collection(collection))
        self._subscribers.setdefault(key, []).append(handler)
        return Subscription(self, key, handler)

    def subscriber_count(self, user_id: str, collection: Collection) -> int:
        return len(self._subscribers.get((user_id, Collection(collection)), []))

    def publish(self, snapshot: CollectionSnapshot) -> int:
        """
        Deliver a snapshot to every handler for its key.

        A failing handler is logged and skipped so the others still
        receive the snapshot. Returns the number of handlers reached.
        """
        handlers = list(self._subscribers.get((snapshot.user_id, snapshot.collection), []))
        return sum(1 for handler in handlers if self.deliver(handler, snapshot))

    def deliver(self, handler: SnapshotHandler, snapshot: CollectionSnapshot) -> bool:
        """Hand one snapshot to one handler; False if the handler raised."""
        try:
            handler(snapshot)
        except Exception as e:
            logger.error(
                "snapshot_handler_failed",
                user_id=snapshot.user_id,
                collection=snapshot.collection.value,
                error=str(e),
            )
            return False
        return True

    def _remove(self, key: tuple[str, Collection], handler: SnapshotHandler) -> None:
        handlers = self._subscribers.get(key, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._subscribers.pop(key, None)
