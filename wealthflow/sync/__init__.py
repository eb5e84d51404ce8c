"""Snapshot sync package."""

from wealthflow.sync.channel import (
    Collection,
    CollectionSnapshot,
    SnapshotChannel,
    SnapshotHandler,
    StoredDocument,
    Subscription,
)

__all__ = [
    "Collection",
    "CollectionSnapshot",
    "SnapshotChannel",
    "SnapshotHandler",
    "StoredDocument",
    "Subscription",
]
