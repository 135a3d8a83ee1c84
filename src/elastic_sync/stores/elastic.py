"""Elasticsearch target store built on the async client."""

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from elasticsearch import ApiError, AsyncElasticsearch, TransportError

from elastic_sync.errors import TargetError
from elastic_sync.stores.base import BulkItemResult

logger = structlog.get_logger()


class ElasticTarget:
    """Target store writing documents into derived indices.

    Indices are never created explicitly; the first write creates them
    with dynamically detected mappings.
    """

    def __init__(self, client: AsyncElasticsearch) -> None:
        """Initialize target store.

        Args:
            client: Connected async Elasticsearch client.
        """
        self._client = client

    async def bulk_index(
        self, index: str, items: Sequence[tuple[str, Mapping[str, Any]]]
    ) -> list[BulkItemResult]:
        """Index a batch of documents under explicit ids.

        Args:
            index: Target index name.
            items: Pairs of (document_id, body).

        Returns:
            One outcome per item, in request order.

        Raises:
            TargetError: If the bulk request as a whole fails.
        """
        operations: list[Mapping[str, Any]] = []
        for doc_id, body in items:
            operations.append({"index": {"_index": index, "_id": doc_id}})
            operations.append(body)

        try:
            response = await self._client.bulk(operations=operations)
        except (ApiError, TransportError) as e:
            raise TargetError(f"Bulk request failed: {e}", index) from e

        # Response items have the same order as the request actions
        results: list[BulkItemResult] = []
        for (doc_id, _), item in zip(items, response["items"], strict=True):
            operation, outcome = next(iter(item.items()))
            results.append(
                BulkItemResult(
                    document_id=doc_id,
                    operation=operation,
                    status=outcome.get("status"),
                    error=outcome.get("error"),
                )
            )
        return results

    async def put_document(
        self, index: str, document_id: str, body: Mapping[str, Any]
    ) -> None:
        """Create or fully replace one document.

        Args:
            index: Target index name.
            document_id: Explicit document id.
            body: Complete document body.

        Raises:
            TargetError: If the write fails.
        """
        try:
            await self._client.index(index=index, id=document_id, document=body)
        except (ApiError, TransportError) as e:
            raise TargetError(f"Index request failed: {e}", index) from e

    async def delete_document(self, index: str, document_id: str) -> bool:
        """Delete one document, treating a missing document as success.

        Args:
            index: Target index name.
            document_id: Explicit document id.

        Returns:
            True if a document was removed, False if it was already absent.

        Raises:
            TargetError: If the delete fails for another reason.
        """
        try:
            response = await self._client.options(ignore_status=404).delete(
                index=index, id=document_id
            )
        except (ApiError, TransportError) as e:
            raise TargetError(f"Delete request failed: {e}", index) from e
        return response.meta.status != 404

    async def delete_index(self, index: str) -> bool:
        """Delete an index, treating a missing index as success.

        Args:
            index: Target index name.

        Returns:
            True if an index was removed, False if it did not exist.

        Raises:
            TargetError: If the delete fails for another reason.
        """
        try:
            response = await self._client.options(ignore_status=404).indices.delete(
                index=index
            )
        except (ApiError, TransportError) as e:
            raise TargetError(f"Index deletion failed: {e}", index) from e
        return response.meta.status != 404

    async def refresh(self, index: str) -> None:
        """Make all writes to an index visible to search and count.

        Args:
            index: Target index name.

        Raises:
            TargetError: If the refresh fails.
        """
        try:
            await self._client.indices.refresh(index=index)
        except (ApiError, TransportError) as e:
            raise TargetError(f"Refresh failed: {e}", index) from e

    async def count(self, index: str) -> int:
        """Count documents in an index.

        Args:
            index: Target index name.

        Returns:
            Number of documents currently visible.

        Raises:
            TargetError: If the count fails.
        """
        try:
            response = await self._client.count(index=index)
        except (ApiError, TransportError) as e:
            raise TargetError(f"Count request failed: {e}", index) from e
        return int(response["count"])

    async def ping(self) -> bool:
        """Check that the cluster answers.

        Returns:
            True if the cluster responded.
        """
        try:
            return bool(await self._client.ping())
        except TransportError:
            return False

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()
        logger.info("elastic_client_closed")
