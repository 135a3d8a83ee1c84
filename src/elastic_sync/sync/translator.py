"""Translation of change events into index mutations."""

import structlog

from elastic_sync.stores.base import TargetStore
from elastic_sync.sync.events import (
    ChangeEvent,
    DeleteEvent,
    DropEvent,
    InsertEvent,
    UpdateEvent,
)
from elastic_sync.sync.naming import index_name

logger = structlog.get_logger()


class EventTranslator:
    """Applies exactly one index mutation per change event.

    Every mutation is keyed by an explicit id or index name, so applying
    the same event twice leaves the index as if it had been applied once.
    """

    def __init__(self, target: TargetStore, prefix: str) -> None:
        """Initialize translator.

        Args:
            target: Connected target store.
            prefix: Index name prefix.
        """
        self._target = target
        self._prefix = prefix

    def index_for(self, collection: str) -> str:
        """Derive the index that mirrors a collection.

        Args:
            collection: Source collection name.

        Returns:
            Target index name.
        """
        return index_name(self._prefix, collection)

    async def apply(self, event: ChangeEvent) -> None:
        """Perform the mutation an event calls for.

        Unknown events are logged and ignored; they never raise.

        Args:
            event: Typed change event.

        Raises:
            TargetError: If the index engine rejects the mutation.
        """
        if isinstance(event, DeleteEvent):
            index = self.index_for(event.collection)
            found = await self._target.delete_document(index, event.document_id)
            logger.debug(
                "document_deleted",
                index=index,
                document_id=event.document_id,
                found=found,
            )

        elif isinstance(event, InsertEvent):
            index = self.index_for(event.collection)
            await self._target.put_document(index, event.document_id, event.document)
            logger.debug("document_created", index=index, document_id=event.document_id)

        elif isinstance(event, UpdateEvent):
            # Full replacement: creates the document if the insert was never seen
            index = self.index_for(event.collection)
            await self._target.put_document(index, event.document_id, event.document)
            logger.debug("document_upserted", index=index, document_id=event.document_id)

        elif isinstance(event, DropEvent):
            index = self.index_for(event.collection)
            existed = await self._target.delete_index(index)
            logger.debug("index_dropped", index=index, existed=existed)

        else:
            logger.warning(
                "change_event_unhandled",
                operation=event.operation,
                collection=event.collection,
                reason=event.reason,
            )
