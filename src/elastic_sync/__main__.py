"""Entry point for the sync service."""

import argparse
import asyncio
import contextlib
import signal
import sys

import structlog
import uvicorn

from elastic_sync.app import build_orchestrator, create_app
from elastic_sync.config import Settings
from elastic_sync.errors import SyncError
from elastic_sync.lifecycle import GracefulShutdown
from elastic_sync.logging import configure_logging
from elastic_sync.sync import SyncOrchestrator

logger = structlog.get_logger()


async def run_headless(orchestrator: SyncOrchestrator, shutdown: GracefulShutdown) -> None:
    """Run synchronization without the probe server.

    Args:
        orchestrator: Orchestrator to run.
        shutdown: Shutdown coordinator instance.
    """
    sync_task = asyncio.create_task(orchestrator.start_sync())
    stop_task = asyncio.create_task(shutdown.wait_for_trigger())

    await asyncio.wait({sync_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

    stop_task.cancel()
    sync_task.cancel()
    try:
        with contextlib.suppress(asyncio.CancelledError, SyncError):
            await sync_task
    finally:
        await orchestrator.close(timeout=shutdown.timeout)


async def serve(settings: Settings) -> int:
    """Run synchronization, with the probe server when enabled.

    Handles SIGTERM/SIGINT for clean shutdown.

    Args:
        settings: Service configuration.

    Returns:
        Process exit code.
    """
    orchestrator = build_orchestrator(settings)
    shutdown = GracefulShutdown(timeout=settings.shutdown_timeout)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger)

    if not settings.health_enabled:
        await run_headless(orchestrator, shutdown)
    else:
        app = create_app(settings, orchestrator)
        app.state.shutdown = shutdown

        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(config)

        async def run_server() -> None:
            """Serve until stopped, then release the shutdown waiter."""
            await server.serve()
            shutdown.trigger()

        async def shutdown_server() -> None:
            """Wait for shutdown signal and stop server."""
            await shutdown.wait_for_trigger()
            server.should_exit = True

        await asyncio.gather(
            run_server(),
            shutdown_server(),
            return_exceptions=True,
        )

    return 1 if orchestrator.status.state == "failed" else 0


async def drop(settings: Settings, collections: list[str]) -> int:
    """Delete the indices derived from the named collections.

    Args:
        settings: Service configuration.
        collections: Collection names whose indices are removed.

    Returns:
        Process exit code.
    """
    orchestrator = build_orchestrator(settings)
    try:
        dropped = await orchestrator.drop_indices(collections)
    finally:
        await orchestrator.close()

    if dropped is None:
        return 1
    logger.info("indices_dropped", indices=dropped)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for python -m elastic_sync."""
    parser = argparse.ArgumentParser(
        prog="elastic-sync",
        description="Mirror MongoDB collections into Elasticsearch indices.",
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("run", help="snapshot (optionally) and watch for changes (default)")
    drop_parser = commands.add_parser(
        "drop-indices", help="delete the indices derived from the given collections"
    )
    drop_parser.add_argument("collections", nargs="+", metavar="COLLECTION")
    args = parser.parse_args(argv)

    settings = Settings()
    configure_logging(debug=settings.debug)

    code = 0
    with contextlib.suppress(KeyboardInterrupt):
        if args.command == "drop-indices":
            code = asyncio.run(drop(settings, args.collections))
        else:
            code = asyncio.run(serve(settings))

    sys.exit(code)


if __name__ == "__main__":
    main()
