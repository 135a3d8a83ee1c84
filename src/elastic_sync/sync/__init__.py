"""Synchronization engine: snapshot loading and change stream mirroring."""

from elastic_sync.sync.consumer import ChangeFeedConsumer
from elastic_sync.sync.dispatch import MutationDispatcher
from elastic_sync.sync.naming import index_name
from elastic_sync.sync.orchestrator import SyncOrchestrator
from elastic_sync.sync.schemas import (
    BulkErrorRecord,
    CollectionReport,
    SnapshotReport,
    SyncStatus,
)
from elastic_sync.sync.snapshot import SnapshotLoader
from elastic_sync.sync.translator import EventTranslator

__all__ = [
    "BulkErrorRecord",
    "ChangeFeedConsumer",
    "CollectionReport",
    "EventTranslator",
    "MutationDispatcher",
    "SnapshotLoader",
    "SnapshotReport",
    "SyncOrchestrator",
    "SyncStatus",
    "index_name",
]
