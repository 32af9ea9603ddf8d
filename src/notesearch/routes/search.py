"""Note search API endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from notesearch.errors import SearchEngineError, SearchEngineUnavailableError
from notesearch.search.schemas import SearchResponse

if TYPE_CHECKING:
    from notesearch.search.gateway import QueryGateway

logger = structlog.get_logger()

router = APIRouter(prefix="/search", tags=["search"])


@router.get(
    "/notes",
    response_model=SearchResponse,
    summary="Search public notes",
    description=(
        "Full-text search with typo tolerance and highlighted matches. "
        "An empty query lists notes newest first."
    ),
)
async def search_notes(
    request: Request,
    q: str = Query(default="", max_length=200, description="Search query string"),
    subject: str | None = Query(
        default=None,
        max_length=100,
        description="Restrict results to one subject",
    ),
    limit: int = Query(default=20, ge=1, le=100, description="Results per page"),
    offset: int = Query(default=0, ge=0, description="Results to skip"),
) -> SearchResponse | JSONResponse:
    """Search public notes.

    Args:
        request: FastAPI request (provides access to app state).
        q: Free-text query (may be empty).
        subject: Optional subject filter.
        limit: Maximum results per page (1-100, default 20).
        offset: Pagination offset (default 0).

    Returns:
        Ranked results with highlight spans, or a 500 error envelope.
    """
    gateway: QueryGateway = request.app.state.query_gateway

    try:
        page = await gateway.search(q, subject=subject or None, limit=limit, offset=offset)
    except (SearchEngineError, SearchEngineUnavailableError) as e:
        logger.error("search_failed", query=q, subject=subject, error=str(e))
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to search notes",
                "message": str(e),
            },
        )

    return SearchResponse(
        results=page.hits,
        total=page.total_estimate,
        query=q,
        processing_time=page.took_ms,
    )
