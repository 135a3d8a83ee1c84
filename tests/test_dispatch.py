"""Per-index mutation ordering tests."""

import asyncio

import pytest

from elastic_sync.sync.dispatch import MutationDispatcher


def _recorder(log: list[str], name: str, delay: float = 0.0):
    async def mutation() -> None:
        log.append(f"start:{name}")
        await asyncio.sleep(delay)
        log.append(f"end:{name}")

    return mutation


@pytest.mark.asyncio
async def test_same_key_runs_in_submission_order() -> None:
    """A slow first mutation still completes before the next for its key."""
    dispatcher = MutationDispatcher()
    log: list[str] = []

    await dispatcher.submit("sync__orders", _recorder(log, "update", delay=0.05))
    await dispatcher.submit("sync__orders", _recorder(log, "drop"))
    await dispatcher.drain()

    assert log == ["start:update", "end:update", "start:drop", "end:drop"]


@pytest.mark.asyncio
async def test_different_keys_run_concurrently() -> None:
    """Mutations for other indices overlap."""
    dispatcher = MutationDispatcher()
    log: list[str] = []

    await dispatcher.submit("sync__orders", _recorder(log, "a", delay=0.05))
    await dispatcher.submit("sync__users", _recorder(log, "b", delay=0.05))
    await dispatcher.drain()

    assert log[:2] == ["start:a", "start:b"]


@pytest.mark.asyncio
async def test_submit_returns_before_completion() -> None:
    """Submitting only schedules the mutation."""
    dispatcher = MutationDispatcher()
    release = asyncio.Event()

    async def blocked() -> None:
        await release.wait()

    task = await dispatcher.submit("sync__orders", blocked)
    assert not task.done()
    assert dispatcher.in_flight == 1

    release.set()
    await dispatcher.drain()
    assert dispatcher.in_flight == 0
    assert dispatcher.applied == 1


@pytest.mark.asyncio
async def test_failure_recorded_and_chain_continues() -> None:
    """A failing mutation does not block later ones for the same key."""
    dispatcher = MutationDispatcher()
    log: list[str] = []

    async def boom() -> None:
        raise RuntimeError("rejected")

    await dispatcher.submit("sync__orders", boom, label="update")
    await dispatcher.submit("sync__orders", _recorder(log, "delete"))
    await dispatcher.drain()

    assert log == ["start:delete", "end:delete"]
    assert dispatcher.failed == 1
    assert dispatcher.applied == 1
    assert dispatcher.first_error is not None
    assert dispatcher.first_error.index == "sync__orders"
    assert isinstance(dispatcher.first_error.cause, RuntimeError)


@pytest.mark.asyncio
async def test_in_flight_limit_applies_backpressure() -> None:
    """Submit waits once the in-flight limit is reached."""
    dispatcher = MutationDispatcher(max_in_flight=1)
    release = asyncio.Event()

    async def blocked() -> None:
        await release.wait()

    await dispatcher.submit("a", blocked)
    second = asyncio.create_task(dispatcher.submit("b", blocked))
    await asyncio.sleep(0.01)
    assert not second.done()

    release.set()
    await second
    await dispatcher.drain()
    assert dispatcher.applied == 2


@pytest.mark.asyncio
async def test_drain_times_out() -> None:
    """Drain reports False when work outlives the timeout."""
    dispatcher = MutationDispatcher()
    release = asyncio.Event()

    async def blocked() -> None:
        await release.wait()

    await dispatcher.submit("sync__orders", blocked)
    assert await dispatcher.drain(timeout=0.01) is False

    await dispatcher.cancel()
    assert dispatcher.in_flight == 0


@pytest.mark.asyncio
async def test_drain_with_nothing_pending() -> None:
    """Drain returns immediately when idle."""
    assert await MutationDispatcher().drain(timeout=0.01) is True


@pytest.mark.asyncio
async def test_wait_for_failure_returns_first_error() -> None:
    """Waiters are released with the earliest failure only."""
    dispatcher = MutationDispatcher()
    waiter = asyncio.create_task(dispatcher.wait_for_failure())

    async def fail(message: str) -> None:
        raise RuntimeError(message)

    await dispatcher.submit("sync__orders", lambda: fail("first"))
    await dispatcher.submit("sync__orders", lambda: fail("second"))
    error = await asyncio.wait_for(waiter, timeout=1.0)
    await dispatcher.drain()

    assert error is dispatcher.first_error
    assert str(error.cause) == "first"
    assert dispatcher.failed == 2
