"""Ordered, per-index issuing of index mutations."""

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial

import structlog

from elastic_sync.errors import MutationError

logger = structlog.get_logger()

Mutation = Callable[[], Awaitable[object]]


class MutationDispatcher:
    """Runs mutations one at a time per key and concurrently across keys.

    The change feed hands over the next event as soon as the previous
    mutation has been issued, not completed. Each new mutation for a key
    is chained behind the last one for that key, so an update followed by
    a drop of the same index is applied in that order, while work on other
    indices proceeds in parallel.

    Attributes:
        applied: Mutations that completed.
        failed: Mutations that raised.
        in_flight: Mutations scheduled but not finished.
        first_error: The earliest failure, if any.
    """

    def __init__(self, max_in_flight: int = 1000) -> None:
        """Initialize dispatcher.

        Args:
            max_in_flight: Pending mutations allowed before submit waits.
        """
        self._tails: dict[str, asyncio.Task[None]] = {}
        self._pending: set[asyncio.Task[None]] = set()
        self._slots = asyncio.Semaphore(max_in_flight)
        self._applied = 0
        self._failed = 0
        self._first_error: MutationError | None = None
        self._failure = asyncio.Event()

    @property
    def applied(self) -> int:
        """Number of mutations that completed."""
        return self._applied

    @property
    def failed(self) -> int:
        """Number of mutations that raised."""
        return self._failed

    @property
    def in_flight(self) -> int:
        """Number of mutations scheduled but not finished."""
        return len(self._pending)

    @property
    def first_error(self) -> MutationError | None:
        """Earliest mutation failure, if any."""
        return self._first_error

    async def wait_for_failure(self) -> MutationError | None:
        """Wait until a mutation fails.

        Returns:
            The earliest mutation failure, recorded before the wait is released.
        """
        await self._failure.wait()
        return self._first_error

    async def submit(
        self,
        key: str,
        mutation: Mutation,
        label: str = "mutation",
    ) -> asyncio.Task[None]:
        """Schedule a mutation behind any earlier ones for the same key.

        Returns once the mutation is scheduled; waits only when the
        in-flight limit is reached.

        Args:
            key: Serialization key (target index name).
            mutation: Zero-argument coroutine function performing the call.
            label: Short description used in failure logs.

        Returns:
            Task that completes when the mutation has finished.
        """
        await self._slots.acquire()
        previous = self._tails.get(key)
        task = asyncio.create_task(self._run(key, previous, mutation, label))
        self._tails[key] = task
        self._pending.add(task)
        task.add_done_callback(partial(self._finish, key))
        return task

    async def _run(
        self,
        key: str,
        previous: asyncio.Task[None] | None,
        mutation: Mutation,
        label: str,
    ) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        try:
            await mutation()
        except Exception as e:
            self._failed += 1
            if self._first_error is None:
                self._first_error = MutationError(key, e)
                self._failure.set()
            logger.error("mutation_failed", index=key, operation=label, error=str(e))
        else:
            self._applied += 1

    def _finish(self, key: str, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        self._slots.release()
        if self._tails.get(key) is task:
            del self._tails[key]

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for every scheduled mutation to finish.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            True if all mutations finished, False if the timeout expired.
        """
        try:
            async with asyncio.timeout(timeout):
                while self._pending:
                    await asyncio.wait(set(self._pending))
        except TimeoutError:
            logger.warning("mutation_drain_timeout", in_flight=len(self._pending))
            return False
        return True

    async def cancel(self) -> None:
        """Cancel every scheduled mutation and wait for them to unwind."""
        tasks = set(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks)
        logger.info("mutations_cancelled", count=len(tasks))
