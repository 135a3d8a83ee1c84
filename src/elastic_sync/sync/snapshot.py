"""Initial bulk load of source collections into their indices."""

import asyncio
from collections.abc import Collection
from datetime import UTC, datetime
from typing import Any

import structlog

from elastic_sync.errors import SourceError, TargetError
from elastic_sync.stores.base import SourceStore, TargetStore
from elastic_sync.sync.documents import split_document
from elastic_sync.sync.naming import index_name
from elastic_sync.sync.schemas import BulkErrorRecord, CollectionReport, SnapshotReport

logger = structlog.get_logger()


class SnapshotLoader:
    """Copies every collection into its derived index.

    Documents are streamed from the source and written in bounded
    chunks under their own ids, so re-running the loader over unchanged
    data overwrites rather than duplicates. A failing collection is
    reported and does not stop the others.
    """

    def __init__(
        self,
        source: SourceStore,
        target: TargetStore,
        prefix: str,
        chunk_size: int = 500,
        concurrency: int = 4,
    ) -> None:
        """Initialize loader.

        Args:
            source: Connected source store.
            target: Connected target store.
            prefix: Index name prefix.
            chunk_size: Maximum documents per bulk request.
            concurrency: Collections loaded in parallel.
        """
        self._source = source
        self._target = target
        self._prefix = prefix
        self._chunk_size = chunk_size
        self._concurrency = concurrency

    async def run(self, excluded: Collection[str] = frozenset()) -> SnapshotReport:
        """Snapshot every genuine, non-excluded collection.

        Args:
            excluded: Collection names that are never read.

        Returns:
            Report with one entry per attempted collection.

        Raises:
            SourceError: If the collection catalog cannot be listed.
        """
        started_at = datetime.now(UTC)
        catalog = await self._source.list_collections()
        names = [
            info.name
            for info in catalog
            if info.is_collection and info.name not in excluded
        ]
        logger.info(
            "snapshot_started",
            collections=len(names),
            excluded=sorted(set(excluded)),
        )

        semaphore = asyncio.Semaphore(self._concurrency)

        async def load(name: str) -> CollectionReport:
            async with semaphore:
                return await self.load_collection(name)

        collections = await asyncio.gather(*(load(name) for name in names))
        report = SnapshotReport(
            collections=list(collections),
            started_at=started_at,
            completed_at=datetime.now(UTC),
        )
        logger.info(
            "snapshot_completed",
            collections=len(report.collections),
            failed=report.failed_collections,
            inconsistent=report.inconsistent_indices,
            document_errors=report.error_count,
        )
        return report

    async def load_collection(self, collection: str) -> CollectionReport:
        """Load one collection into its index and verify the count.

        Args:
            collection: Source collection name.

        Returns:
            Report for the collection. Read and bulk call failures are
            recorded in ``failure`` rather than raised.
        """
        index = index_name(self._prefix, collection)
        report = CollectionReport(collection=collection, index=index)
        logger.debug("snapshot_collection_started", collection=collection, index=index)

        try:
            chunk: list[tuple[str, dict[str, Any]]] = []
            async for document in self._source.iter_documents(collection, self._chunk_size):
                chunk.append(split_document(document))
                report.documents_read += 1
                if len(chunk) >= self._chunk_size:
                    await self._write_chunk(index, chunk, report)
                    chunk = []
            if chunk:
                await self._write_chunk(index, chunk, report)

            if report.documents_read == 0:
                report.skipped_empty = True
                logger.warning("snapshot_collection_empty", collection=collection, index=index)
                return report

            await self._target.refresh(index)
            report.indexed_count = await self._target.count(index)
        except (SourceError, TargetError) as e:
            report.failure = str(e)
            logger.error(
                "snapshot_collection_failed",
                collection=collection,
                index=index,
                documents_read=report.documents_read,
                error=str(e),
            )
            return report

        if report.errors:
            logger.warning(
                "snapshot_document_errors",
                index=index,
                count=len(report.errors),
                retryable=sum(1 for r in report.errors if r.retryable),
                errors=[r.model_dump(exclude={"document"}) for r in report.errors],
            )

        if not report.consistent:
            logger.warning(
                "snapshot_count_mismatch",
                index=index,
                documents_read=report.documents_read,
                indexed_count=report.indexed_count,
            )

        logger.debug(
            "snapshot_collection_completed",
            index=index,
            documents_read=report.documents_read,
            indexed_count=report.indexed_count,
        )
        return report

    async def _write_chunk(
        self,
        index: str,
        chunk: list[tuple[str, dict[str, Any]]],
        report: CollectionReport,
    ) -> None:
        results = await self._target.bulk_index(index, chunk)
        for (doc_id, body), result in zip(chunk, results, strict=True):
            if result.ok:
                report.documents_indexed += 1
                continue
            report.errors.append(
                BulkErrorRecord(
                    index=index,
                    document_id=doc_id,
                    operation=result.operation,
                    status=result.status,
                    error=result.error,
                    document=body,
                )
            )
        logger.debug("snapshot_chunk_written", index=index, size=len(chunk))
