"""Sync progress endpoint."""

from fastapi import APIRouter, Request

from elastic_sync.sync import SyncOrchestrator, SyncStatus

router = APIRouter(tags=["status"])


@router.get(
    "/status",
    response_model=SyncStatus,
    summary="Current synchronization progress",
)
async def sync_status(request: Request) -> SyncStatus:
    """Report phase, event counters and the last snapshot report.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Current sync status.
    """
    orchestrator: SyncOrchestrator = request.app.state.orchestrator
    return orchestrator.status
