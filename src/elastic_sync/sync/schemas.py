"""Pydantic schemas for snapshot reports and sync status."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field

SyncState = Literal["starting", "snapshotting", "watching", "stopped", "failed"]

RETRYABLE_STATUS = 429


class BulkErrorRecord(BaseModel):
    """A document the index engine rejected during a bulk load.

    Attributes:
        index: Index the document was written to.
        document_id: Explicit id of the rejected document.
        operation: Bulk action that was attempted.
        status: HTTP-style status code. 429 means the item can be retried;
            anything else is most likely a mapping error in the document.
        error: Error cause returned by the index engine.
        document: Body that was sent.
    """

    index: str
    document_id: str
    operation: str
    status: int | None = None
    error: dict[str, Any] | None = None
    document: dict[str, Any] = Field(default_factory=dict)

    @property
    def retryable(self) -> bool:
        """Whether the rejection was throttling rather than a document defect."""
        return self.status == RETRYABLE_STATUS


class CollectionReport(BaseModel):
    """Outcome of snapshotting one collection.

    Attributes:
        collection: Source collection name.
        index: Derived index name.
        documents_read: Documents read from the source.
        documents_indexed: Bulk items the index engine accepted.
        indexed_count: Document count of the index after loading.
        errors: Per-document bulk rejections.
        skipped_empty: The collection had no documents; nothing was written.
        failure: Reason the step aborted, if it did.
    """

    collection: str
    index: str
    documents_read: int = 0
    documents_indexed: int = 0
    indexed_count: int | None = None
    errors: list[BulkErrorRecord] = Field(default_factory=list)
    skipped_empty: bool = False
    failure: str | None = None

    @computed_field
    @property
    def failed(self) -> bool:
        """Whether the snapshot step for this collection aborted."""
        return self.failure is not None

    @computed_field
    @property
    def consistent(self) -> bool:
        """Whether the index count matched the number of documents read."""
        if self.skipped_empty:
            return True
        return self.indexed_count == self.documents_read


class SnapshotReport(BaseModel):
    """Outcome of one full snapshot run.

    Attributes:
        collections: One report per attempted collection.
        started_at: When the run began.
        completed_at: When the last collection finished.
    """

    collections: list[CollectionReport] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @computed_field
    @property
    def failed_collections(self) -> list[str]:
        """Collections whose snapshot step aborted."""
        return [c.collection for c in self.collections if c.failed]

    @computed_field
    @property
    def inconsistent_indices(self) -> list[str]:
        """Indices whose count differs from the source after loading."""
        return [c.index for c in self.collections if not c.failed and not c.consistent]

    @computed_field
    @property
    def error_count(self) -> int:
        """Total per-document bulk rejections."""
        return sum(len(c.errors) for c in self.collections)


class SyncStatus(BaseModel):
    """Live progress of the sync service.

    Attributes:
        state: Current phase of the orchestrator.
        started_at: When synchronization started.
        last_event_at: When the last change event was received.
        events_received: Change events read from the feed.
        events_skipped: Events ignored (excluded or unhandled).
        mutations_applied: Index mutations that completed.
        mutations_failed: Index mutations that raised.
        snapshot: Report of the most recent snapshot run.
        error: Description of the failure that stopped synchronization.
    """

    state: SyncState = "starting"
    started_at: datetime | None = None
    last_event_at: datetime | None = None
    events_received: int = 0
    events_skipped: int = 0
    mutations_applied: int = 0
    mutations_failed: int = 0
    snapshot: SnapshotReport | None = None
    error: str | None = None
