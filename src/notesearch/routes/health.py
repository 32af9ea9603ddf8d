"""Health check endpoints for the process and the search engine."""
from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel

if TYPE_CHECKING:
    from notesearch.search.engine import SearchBackend

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class SearchHealthResponse(BaseModel):
    """Response model for the search engine health check.

    Attributes:
        success: Whether the check itself completed.
        healthy: Whether the engine reports itself available.
        host: Engine base URL that was checked.
    """

    success: bool
    healthy: bool
    host: str


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/search", response_model=SearchHealthResponse)
async def search_health(request: Request) -> SearchHealthResponse:
    """Report whether the search engine is reachable and available.

    Always answers 200; an unavailable engine is reported as
    ``healthy: false``.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Engine health and host.
    """
    backend: SearchBackend = request.app.state.search_backend
    healthy = await backend.health()
    return SearchHealthResponse(success=True, healthy=healthy, host=backend.host)
