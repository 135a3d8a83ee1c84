"""Continuous consumption of the source change stream."""

import asyncio
from collections.abc import Collection, Mapping
from datetime import UTC, datetime
from functools import partial
from typing import Any

import structlog

from elastic_sync.errors import ChangeFeedError
from elastic_sync.stores.base import SourceStore
from elastic_sync.sync.dispatch import MutationDispatcher
from elastic_sync.sync.events import UnknownEvent
from elastic_sync.sync.normalizer import parse_change_event
from elastic_sync.sync.schemas import SyncStatus
from elastic_sync.sync.translator import EventTranslator

logger = structlog.get_logger()


class ChangeFeedConsumer:
    """Mirrors every change observed on the source into the index.

    One subscription covers the whole database. Each event is parsed,
    filtered against the exclusion set, and its mutation issued through
    the dispatcher before the next event is read.
    """

    def __init__(
        self,
        source: SourceStore,
        translator: EventTranslator,
        dispatcher: MutationDispatcher,
        excluded: Collection[str] = frozenset(),
        status: SyncStatus | None = None,
        propagate_errors: bool = False,
    ) -> None:
        """Initialize consumer.

        Args:
            source: Connected source store.
            translator: Translator applying events to the target.
            dispatcher: Per-index mutation dispatcher.
            excluded: Collections whose events are ignored.
            status: Status record updated as events arrive.
            propagate_errors: Stop with the first mutation failure instead
                of logging it and continuing.
        """
        self._source = source
        self._translator = translator
        self._dispatcher = dispatcher
        self._excluded = frozenset(excluded)
        self._status = status if status is not None else SyncStatus()
        self._propagate_errors = propagate_errors

    async def handle(self, raw: Mapping[str, Any]) -> asyncio.Task[None] | None:
        """Route one raw change event to its index mutation.

        Args:
            raw: Raw change stream document.

        Returns:
            Task for the scheduled mutation, or None if the event was skipped.
        """
        event = parse_change_event(raw)
        self._status.events_received += 1
        self._status.last_event_at = datetime.now(UTC)
        logger.debug("change_event_received", kind=event.kind, collection=event.collection)

        if isinstance(event, UnknownEvent):
            self._status.events_skipped += 1
            await self._translator.apply(event)
            return None

        if event.collection in self._excluded:
            self._status.events_skipped += 1
            logger.debug("change_event_excluded", collection=event.collection)
            return None

        index = self._translator.index_for(event.collection)
        return await self._dispatcher.submit(
            index, partial(self._translator.apply, event), label=event.kind
        )

    async def run(self) -> None:
        """Consume the change stream until it fails or the task is cancelled.

        Never returns normally.

        Raises:
            ChangeFeedError: If the subscription errors or closes.
            MutationError: If a mutation failed and errors propagate.
        """
        logger.info("change_feed_started", excluded=sorted(self._excluded))
        if not self._propagate_errors:
            await self._consume()
            return

        # Mutations fail in the background, so watch for that alongside the feed
        feed = asyncio.create_task(self._consume())
        failure = asyncio.create_task(self._dispatcher.wait_for_failure())
        try:
            done, _ = await asyncio.wait(
                {feed, failure}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            feed.cancel()
            failure.cancel()
            await asyncio.gather(feed, failure, return_exceptions=True)

        if feed in done:
            feed.result()
        error = failure.result()
        if error is not None:
            raise error

    async def _consume(self) -> None:
        async for raw in self._source.changes():
            await self.handle(raw)

        raise ChangeFeedError("Change stream closed")
