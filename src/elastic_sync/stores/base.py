"""Interfaces the sync engine expects from its two stores."""

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any, Protocol

from pydantic import BaseModel


class CollectionInfo(BaseModel):
    """Catalog entry for one namespace in the source database.

    Attributes:
        name: Collection name.
        type: Catalog type tag ("collection", "view", "timeseries").
    """

    name: str
    type: str = "collection"

    @property
    def is_collection(self) -> bool:
        """Whether this entry is a genuine collection, not a view or system artifact."""
        return self.type == "collection" and not self.name.startswith("system.")


class BulkItemResult(BaseModel):
    """Outcome of one item in a bulk request.

    Attributes:
        document_id: Explicit id the item was written under.
        operation: Bulk action name ("index").
        status: HTTP-style status code for the item.
        error: Error cause returned by the index engine, if the item failed.
    """

    document_id: str
    operation: str = "index"
    status: int | None = None
    error: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        """Whether the item was written."""
        return self.error is None


class SourceStore(Protocol):
    """Read side: the document database being mirrored."""

    async def list_collections(self) -> list[CollectionInfo]: ...

    def iter_documents(
        self, collection: str, batch_size: int
    ) -> AsyncIterator[Mapping[str, Any]]: ...

    def changes(self) -> AsyncIterator[Mapping[str, Any]]: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class TargetStore(Protocol):
    """Write side: the search engine holding derived indices."""

    async def bulk_index(
        self, index: str, items: Sequence[tuple[str, Mapping[str, Any]]]
    ) -> list[BulkItemResult]: ...

    async def put_document(
        self, index: str, document_id: str, body: Mapping[str, Any]
    ) -> None: ...

    async def delete_document(self, index: str, document_id: str) -> bool: ...

    async def delete_index(self, index: str) -> bool: ...

    async def refresh(self, index: str) -> None: ...

    async def count(self, index: str) -> int: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...
