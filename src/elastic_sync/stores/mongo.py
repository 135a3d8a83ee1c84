"""MongoDB source store built on the PyMongo async client."""

from collections.abc import AsyncIterator, Mapping
from typing import Any

import structlog
from bson.errors import BSONError
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from elastic_sync.errors import ChangeFeedError, SourceError
from elastic_sync.stores.base import CollectionInfo

logger = structlog.get_logger()


class MongoSource:
    """Source store reading collections and the database change stream.

    Requires a replica set or sharded cluster; standalone servers do not
    provide change streams.
    """

    def __init__(self, client: AsyncMongoClient, database: str | None = None) -> None:
        """Initialize source store.

        Args:
            client: Connected async MongoDB client.
            database: Database to mirror. Uses the URI default if None.
        """
        self._client = client
        self._db = client.get_database(database) if database else client.get_default_database()

    @property
    def database_name(self) -> str:
        """Name of the mirrored database."""
        return self._db.name

    async def list_collections(self) -> list[CollectionInfo]:
        """List every namespace in the database with its type tag.

        Returns:
            Catalog entries including views and system collections.

        Raises:
            SourceError: If the catalog cannot be read.
        """
        try:
            cursor = await self._db.list_collections()
            return [
                CollectionInfo(name=info["name"], type=info.get("type", "collection"))
                async for info in cursor
            ]
        except (PyMongoError, BSONError) as e:
            raise SourceError(f"Failed to list collections: {e}") from e

    async def iter_documents(
        self, collection: str, batch_size: int
    ) -> AsyncIterator[Mapping[str, Any]]:
        """Stream every document of a collection.

        Args:
            collection: Collection name.
            batch_size: Documents fetched per server round trip.

        Yields:
            Raw documents including ``_id``.

        Raises:
            SourceError: If the cursor fails or a document cannot be decoded.
        """
        try:
            async for document in self._db[collection].find().batch_size(batch_size):
                yield document
        except (PyMongoError, BSONError) as e:
            raise SourceError(f"Failed to read collection: {e}", collection) from e

    async def changes(self) -> AsyncIterator[Mapping[str, Any]]:
        """Watch the whole database for changes.

        Update events are delivered with the current full document.

        Yields:
            Raw change stream documents in server order.

        Raises:
            ChangeFeedError: If the stream fails or yields an undecodable event.
        """
        try:
            async with await self._db.watch(full_document="updateLookup") as stream:
                logger.info("change_stream_opened", database=self._db.name)
                async for change in stream:
                    yield change
        except (PyMongoError, BSONError) as e:
            raise ChangeFeedError(f"Change stream failed: {e}") from e

    async def ping(self) -> bool:
        """Check that the server answers.

        Returns:
            True if the ping command succeeded.
        """
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            return False
        return True

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()
        logger.info("mongo_client_closed")
