"""Top-level sequencing of snapshot loading and change consumption."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime

import structlog

from elastic_sync.config import SyncOptions
from elastic_sync.errors import SnapshotError, SyncError
from elastic_sync.stores.base import SourceStore, TargetStore
from elastic_sync.sync.consumer import ChangeFeedConsumer
from elastic_sync.sync.dispatch import MutationDispatcher
from elastic_sync.sync.naming import index_name
from elastic_sync.sync.schemas import SnapshotReport, SyncStatus
from elastic_sync.sync.snapshot import SnapshotLoader
from elastic_sync.sync.translator import EventTranslator

logger = structlog.get_logger()

SourceFactory = Callable[[], Awaitable[SourceStore]]
TargetFactory = Callable[[], Awaitable[TargetStore]]


class SyncOrchestrator:
    """Owns both store handles and runs the sync phases in order.

    Store handles are either passed in or created on first use through
    the given factories. The error policy applies to the three public
    entry points: with ``propagate_errors`` a failure is raised to the
    caller; without it the failure is logged and the call returns None.

    Attributes:
        options: Immutable sync options.
    """

    def __init__(
        self,
        options: SyncOptions,
        *,
        source: SourceStore | None = None,
        target: TargetStore | None = None,
        source_factory: SourceFactory | None = None,
        target_factory: TargetFactory | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            options: Sync options.
            source: Already connected source store.
            target: Already connected target store.
            source_factory: Coroutine function connecting the source lazily.
            target_factory: Coroutine function connecting the target lazily.
        """
        self.options = options
        self._source = source
        self._target = target
        self._source_factory = source_factory
        self._target_factory = target_factory
        self._dispatcher = MutationDispatcher(max_in_flight=options.max_in_flight)
        self._status = SyncStatus()

    @property
    def status(self) -> SyncStatus:
        """Snapshot of current progress."""
        status = self._status.model_copy()
        status.mutations_applied = self._dispatcher.applied
        status.mutations_failed = self._dispatcher.failed
        return status

    def _excluded(self, excluded: Iterable[str] | None) -> frozenset[str]:
        if excluded is None:
            return self.options.excluded_collections
        return frozenset(excluded)

    async def _ensure_source(self) -> SourceStore:
        if self._source is None:
            if self._source_factory is None:
                raise SyncError("No source store configured")
            self._source = await self._source_factory()
        return self._source

    async def _ensure_target(self) -> TargetStore:
        if self._target is None:
            if self._target_factory is None:
                raise SyncError("No target store configured")
            self._target = await self._target_factory()
        return self._target

    def _fail(self, operation: str, error: SyncError) -> None:
        self._status.state = "failed"
        self._status.error = str(error)
        logger.error(
            "sync_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )

    async def _snapshot(self, excluded: frozenset[str]) -> SnapshotReport:
        target = await self._ensure_target()
        source = await self._ensure_source()
        self._status.state = "snapshotting"
        logger.debug("initial_sync_started")

        loader = SnapshotLoader(
            source,
            target,
            self.options.prefix,
            chunk_size=self.options.chunk_size,
            concurrency=self.options.snapshot_concurrency,
        )
        report = await loader.run(excluded)
        self._status.snapshot = report
        if report.failed_collections and self.options.propagate_errors:
            raise SnapshotError(report.failed_collections)
        return report

    async def _watch(self, excluded: frozenset[str]) -> None:
        target = await self._ensure_target()
        source = await self._ensure_source()

        if self.options.initial_sync:
            try:
                await self._snapshot(excluded)
            except SyncError as e:
                if self.options.propagate_errors:
                    raise
                # Quiet policy continues on to the change feed
                self._fail("initial_sync", e)

        self._status.state = "watching"
        consumer = ChangeFeedConsumer(
            source,
            EventTranslator(target, self.options.prefix),
            self._dispatcher,
            excluded=excluded,
            status=self._status,
            propagate_errors=self.options.propagate_errors,
        )
        await consumer.run()

    async def initial_sync(
        self, excluded: Iterable[str] | None = None
    ) -> SnapshotReport | None:
        """Snapshot every non-excluded collection into its index.

        Args:
            excluded: Collections to skip. Defaults to the configured set.

        Returns:
            Snapshot report, or None if the run failed and errors are
            not propagated.

        Raises:
            SyncError: Under the propagating policy, on connection failure,
                catalog failure, or if any collection failed.
        """
        try:
            return await self._snapshot(self._excluded(excluded))
        except SyncError as e:
            self._fail("initial_sync", e)
            if self.options.propagate_errors:
                raise
            return None

    async def start_sync(self, excluded: Iterable[str] | None = None) -> None:
        """Optionally snapshot, then mirror changes until failure or cancellation.

        Args:
            excluded: Collections to skip. Defaults to the configured set.

        Raises:
            SyncError: Under the propagating policy, when startup, the
                snapshot, or the change feed fails.
        """
        self._status.started_at = datetime.now(UTC)
        try:
            await self._watch(self._excluded(excluded))
        except asyncio.CancelledError:
            self._status.state = "stopped"
            logger.info("sync_cancelled")
            raise
        except SyncError as e:
            self._fail("start_sync", e)
            if self.options.propagate_errors:
                raise

    async def drop_indices(
        self,
        collections: Iterable[str],
        excluded: Iterable[str] | None = None,
    ) -> list[str] | None:
        """Delete the indices derived from the given collections.

        The source is not contacted.

        Args:
            collections: Collection names whose indices are removed.
            excluded: Collections to leave alone. Defaults to the configured set.

        Returns:
            Names of the indices that were deleted or already absent, or
            None if the operation failed and errors are not propagated.

        Raises:
            SyncError: Under the propagating policy, if a deletion fails.
        """
        skip = self._excluded(excluded)
        try:
            target = await self._ensure_target()
            dropped: list[str] = []
            for collection in collections:
                if not collection or collection in skip:
                    continue
                index = index_name(self.options.prefix, collection)
                existed = await target.delete_index(index)
                logger.debug("index_dropped", index=index, existed=existed)
                dropped.append(index)
            return dropped
        except SyncError as e:
            self._fail("drop_indices", e)
            if self.options.propagate_errors:
                raise
            return None

    async def ready(self) -> dict[str, bool]:
        """Check both stores without connecting them.

        Returns:
            Mapping of store name to whether it answered a ping.
        """
        return {
            "source": self._source is not None and await self._source.ping(),
            "target": self._target is not None and await self._target.ping(),
        }

    async def close(self, timeout: float | None = None) -> None:
        """Let in-flight mutations finish, then close both stores.

        Args:
            timeout: Seconds to wait for in-flight mutations before
                cancelling them.
        """
        if not await self._dispatcher.drain(timeout):
            await self._dispatcher.cancel()

        for store in (self._source, self._target):
            if store is not None:
                await store.close()
        self._source = None
        self._target = None

        if self._status.state != "failed":
            self._status.state = "stopped"
        logger.info(
            "sync_closed",
            mutations_applied=self._dispatcher.applied,
            mutations_failed=self._dispatcher.failed,
        )
