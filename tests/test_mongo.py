"""MongoDB source adapter tests over a stubbed client."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
from bson.errors import InvalidBSON
from fakes import FakeTarget
from pymongo.errors import OperationFailure

from elastic_sync.config import SyncOptions
from elastic_sync.errors import ChangeFeedError, SourceError
from elastic_sync.stores.mongo import MongoSource
from elastic_sync.sync.orchestrator import SyncOrchestrator
from elastic_sync.sync.snapshot import SnapshotLoader

UNDECODABLE = InvalidBSON("'utf-8' codec can't decode byte 0xff")


class _Cursor:
    """Async cursor yielding documents, then optionally raising."""

    def __init__(self, documents: list[dict[str, Any]], error: Exception | None = None) -> None:
        self._documents = documents
        self._error = error

    def batch_size(self, size: int) -> "_Cursor":
        return self

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        for document in self._documents:
            yield document
        if self._error is not None:
            raise self._error

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def __aenter__(self) -> "_Cursor":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None


class _Collection:
    def __init__(self, cursor: _Cursor) -> None:
        self._cursor = cursor

    def find(self) -> _Cursor:
        return self._cursor


class _Database:
    name = "app"

    def __init__(
        self,
        cursors: dict[str, _Cursor],
        catalog_error: Exception | None = None,
        stream: _Cursor | None = None,
    ) -> None:
        self._cursors = cursors
        self._catalog_error = catalog_error
        self._stream = stream or _Cursor([])

    def __getitem__(self, name: str) -> _Collection:
        return _Collection(self._cursors[name])

    async def list_collections(self) -> _Cursor:
        return _Cursor(
            [{"name": name, "type": "collection"} for name in self._cursors],
            self._catalog_error,
        )

    async def watch(self, full_document: str) -> _Cursor:
        return self._stream


class _Client:
    def __init__(self, database: _Database) -> None:
        self._database = database

    def get_database(self, name: str) -> _Database:
        return self._database


def _source(database: _Database) -> MongoSource:
    return MongoSource(_Client(database), "app")  # type: ignore[arg-type]


def _broken_and_orders() -> _Database:
    return _Database(
        {
            "broken": _Cursor([{"_id": "b1"}], UNDECODABLE),
            "orders": _Cursor([{"_id": "o1", "total": 10}, {"_id": "o2", "total": 20}]),
        }
    )


@pytest.mark.asyncio
async def test_undecodable_document_raises_source_error() -> None:
    """Decode failures surface as a SourceError naming the collection."""
    source = _source(_broken_and_orders())

    with pytest.raises(SourceError) as exc_info:
        async for _ in source.iter_documents("broken", batch_size=10):
            pass

    assert exc_info.value.collection == "broken"
    assert isinstance(exc_info.value.__cause__, InvalidBSON)


@pytest.mark.asyncio
async def test_undecodable_collection_does_not_abort_snapshot(target: FakeTarget) -> None:
    """One undecodable collection fails alone; the rest are loaded."""
    loader = SnapshotLoader(_source(_broken_and_orders()), target, "sync", chunk_size=10)

    report = await loader.run(frozenset())

    assert report.failed_collections == ["broken"]
    assert set(target.indices["sync__orders"]) == {"o1", "o2"}


@pytest.mark.asyncio
async def test_quiet_initial_sync_reports_undecodable_collection(target: FakeTarget) -> None:
    """The quiet policy returns a report instead of leaking decode errors."""
    orchestrator = SyncOrchestrator(
        SyncOptions(prefix="sync"), source=_source(_broken_and_orders()), target=target
    )

    report = await orchestrator.initial_sync()

    assert report is not None
    assert report.failed_collections == ["broken"]


@pytest.mark.asyncio
async def test_catalog_failure_raises_source_error() -> None:
    """Server errors while listing collections are wrapped."""
    database = _Database({}, catalog_error=OperationFailure("not authorized"))

    with pytest.raises(SourceError):
        await _source(database).list_collections()


@pytest.mark.asyncio
async def test_undecodable_change_event_raises_change_feed_error() -> None:
    """A decode failure on the feed ends it as a ChangeFeedError."""
    stream = _Cursor([{"operationType": "insert"}], UNDECODABLE)
    source = _source(_Database({}, stream=stream))

    received = []
    with pytest.raises(ChangeFeedError):
        async for change in source.changes():
            received.append(change)

    assert received == [{"operationType": "insert"}]
