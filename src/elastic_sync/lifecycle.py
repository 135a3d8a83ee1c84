"""Graceful shutdown coordinator for async tasks."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Coordinates graceful shutdown across async tasks.

    Signal handlers call trigger(); the probe server and the sync task
    wait on it and stop, after which in-flight mutations are drained
    within the configured timeout.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
        timeout: Seconds allowed for draining in-flight work.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize shutdown coordinator.

        Args:
            timeout: Default seconds to wait for shutdown completion.
        """
        self._triggered = False
        self._event = asyncio.Event()
        self._timeout = timeout

    @property
    def is_triggered(self) -> bool:
        """Check if shutdown has been triggered.

        Returns:
            True if shutdown signal received.
        """
        return self._triggered

    @property
    def timeout(self) -> float:
        """Seconds allowed for draining in-flight work."""
        return self._timeout

    def trigger(self) -> None:
        """Signal all waiting tasks to begin shutdown.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._triggered:
            return
        logger.info("shutdown_triggered")
        self._triggered = True
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Wait indefinitely for shutdown signal.

        Blocks until trigger() is called from another task or signal handler.
        """
        await self._event.wait()
