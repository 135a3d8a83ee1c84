"""Entry point tests."""

import pytest
from fakes import FakeSource, FakeTarget

from elastic_sync.__main__ import run_headless
from elastic_sync.config import SyncOptions
from elastic_sync.lifecycle import GracefulShutdown
from elastic_sync.sync import SyncOrchestrator


@pytest.mark.asyncio
async def test_headless_run_closes_stores_after_unexpected_error() -> None:
    """A foreign error from the sync task still releases both stores."""
    source = FakeSource()
    source.feed_error = RuntimeError("unexpected")
    target = FakeTarget()
    orchestrator = SyncOrchestrator(
        SyncOptions(prefix="sync", initial_sync=False), source=source, target=target
    )

    with pytest.raises(RuntimeError, match="unexpected"):
        await run_headless(orchestrator, GracefulShutdown(timeout=1.0))

    assert source.closed
    assert target.closed


@pytest.mark.asyncio
async def test_headless_run_stops_on_shutdown_trigger() -> None:
    """Triggering shutdown cancels the feed and closes the stores."""
    source = FakeSource()
    source.block_after_events = True
    target = FakeTarget()
    orchestrator = SyncOrchestrator(
        SyncOptions(prefix="sync", initial_sync=False), source=source, target=target
    )
    shutdown = GracefulShutdown(timeout=1.0)
    shutdown.trigger()

    await run_headless(orchestrator, shutdown)

    assert source.closed
    assert target.closed
    assert orchestrator.status.state == "stopped"
