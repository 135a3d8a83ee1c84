"""FastAPI application factory and lifespan management."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import partial

import structlog
from fastapi import FastAPI

from elastic_sync import __version__
from elastic_sync.config import Settings
from elastic_sync.connections import connect_source, connect_target
from elastic_sync.errors import SyncError
from elastic_sync.routes import health, status
from elastic_sync.sync import SyncOrchestrator

logger = structlog.get_logger()


def build_orchestrator(settings: Settings) -> SyncOrchestrator:
    """Create an orchestrator that connects both stores on first use.

    Args:
        settings: Service configuration.

    Returns:
        Orchestrator with lazy store factories.
    """
    return SyncOrchestrator(
        settings.sync_options(),
        source_factory=partial(connect_source, settings),
        target_factory=partial(connect_target, settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Starts synchronization as a background task on startup. On shutdown
    cancels it, lets in-flight mutations drain, and closes both stores.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    orchestrator: SyncOrchestrator = app.state.orchestrator
    logger.info(
        "sync_service_startup",
        host=settings.host,
        port=settings.port,
        prefix=orchestrator.options.prefix,
        initial_sync=orchestrator.options.initial_sync,
    )

    def on_sync_exit(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        logger.warning("sync_task_exited", failed=task.exception() is not None)
        # Without a live change feed there is nothing left to serve
        shutdown = getattr(app.state, "shutdown", None)
        if shutdown is not None:
            shutdown.trigger()

    sync_task = asyncio.create_task(orchestrator.start_sync())
    sync_task.add_done_callback(on_sync_exit)

    try:
        yield
    finally:
        sync_task.cancel()
        try:
            with contextlib.suppress(asyncio.CancelledError, SyncError):
                await sync_task
        finally:
            await orchestrator.close(timeout=settings.shutdown_timeout)
            logger.info("sync_service_shutdown")


def create_app(
    settings: Settings,
    orchestrator: SyncOrchestrator | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance.
        orchestrator: Orchestrator to run. Built from settings if None.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Elastic Sync",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator or build_orchestrator(settings)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(status.router, prefix="/api/v1")

    return app
