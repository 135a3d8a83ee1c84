"""Health check endpoints for liveness and readiness probes."""
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from elastic_sync.sync import SyncOrchestrator

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns immediate success if the process is running.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Pings the source database and the search cluster, and checks that
    synchronization has not stopped on a failure. Returns 200 if all
    checks pass, 503 if any fail.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Readiness status with individual check results.
    """
    orchestrator: SyncOrchestrator = request.app.state.orchestrator
    stores = await orchestrator.ready()
    checks = [
        ReadinessCheck(
            name=f"store:{name}",
            status="ok" if reachable else "failed",
            message=None if reachable else "Not connected or not responding",
        )
        for name, reachable in stores.items()
    ]

    sync_status = orchestrator.status
    if sync_status.state == "failed":
        checks.append(
            ReadinessCheck(name="sync", status="failed", message=sync_status.error)
        )
    else:
        checks.append(ReadinessCheck(name="sync", status="ok"))

    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
