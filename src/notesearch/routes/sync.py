"""Operator endpoints for full resyncs and index maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from fastapi import APIRouter, Path, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from notesearch.errors import (
    IndexConfigurationError,
    RecordSourceError,
    SearchEngineError,
    SearchEngineUnavailableError,
)
from notesearch.search.schemas import TaskStatus

if TYPE_CHECKING:
    from notesearch.search.engine import SearchBackend
    from notesearch.search.settings import IndexConfigurator
    from notesearch.search.sync import SyncEngine

logger = structlog.get_logger()

router = APIRouter(prefix="/sync", tags=["sync"])

_UPSTREAM_ERRORS = (SearchEngineError, SearchEngineUnavailableError)


class SyncResponse(BaseModel):
    """Response after a full sync was queued."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    synced: int
    total: int
    task_uid: int | None = Field(default=None, alias="taskUid")


class ClearIndexResponse(BaseModel):
    """Response after an index clear was queued."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    task_uid: int = Field(alias="taskUid")


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message},
    )


@router.post("", response_model=SyncResponse)
async def sync_all(request: Request) -> SyncResponse | JSONResponse:
    """Configure the index and upsert every public note.

    Checks engine health first and answers 503 without touching the
    index if it is down. The returned ``taskUid`` can be polled at
    ``/sync/tasks/{taskUid}``.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Sync counts and task id, or an error envelope.
    """
    backend: SearchBackend = request.app.state.search_backend
    configurator: IndexConfigurator = request.app.state.index_configurator
    sync_engine: SyncEngine = request.app.state.sync_engine

    if not await backend.health():
        logger.error("sync_aborted_engine_unhealthy", host=backend.host)
        return _error(503, "Search engine is not available", backend.host)

    try:
        await configurator.initialize()
    except IndexConfigurationError as e:
        logger.error("sync_aborted_configuration_failed", failed_groups=e.failed_groups)
        return _error(503, "Failed to configure search index", str(e))

    try:
        result = await sync_engine.sync_all()
    except (*_UPSTREAM_ERRORS, RecordSourceError) as e:
        logger.error("sync_all_failed", error=str(e))
        return _error(500, "Failed to sync notes", str(e))

    return SyncResponse(
        message="Notes synchronized successfully",
        synced=result.synced,
        total=result.total,
        task_uid=result.task_uid,
    )


@router.get("/tasks/{task_uid}", response_model=TaskStatus)
async def task_status(
    request: Request,
    task_uid: int = Path(ge=0, description="Engine task id returned by a sync"),
) -> TaskStatus | JSONResponse:
    """Poll an asynchronous indexing task.

    Args:
        request: FastAPI request (provides access to app state).
        task_uid: Engine task id.

    Returns:
        Task status, 404 if the engine does not know the task.
    """
    sync_engine: SyncEngine = request.app.state.sync_engine
    try:
        return await sync_engine.task_status(task_uid)
    except SearchEngineError as e:
        if e.status_code == 404:
            return _error(404, "Task not found", str(task_uid))
        return _error(500, "Failed to fetch task", str(e))
    except SearchEngineUnavailableError as e:
        return _error(503, "Search engine is not available", str(e))


@router.get("/stats", response_model=None)
async def index_stats(request: Request) -> dict[str, Any] | JSONResponse:
    """Return the engine's statistics for the notes index.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Raw engine statistics, or an error envelope.
    """
    sync_engine: SyncEngine = request.app.state.sync_engine
    try:
        stats = await sync_engine.index_stats()
    except _UPSTREAM_ERRORS as e:
        logger.error("index_stats_failed", error=str(e))
        return _error(500, "Failed to get index stats", str(e))
    return {"success": True, "stats": stats}


@router.delete("/index", response_model=ClearIndexResponse)
async def clear_index(request: Request) -> ClearIndexResponse | JSONResponse:
    """Remove every document from the notes index.

    Follow with ``POST /sync`` to rebuild from the record source.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Engine task id for the clear, or an error envelope.
    """
    sync_engine: SyncEngine = request.app.state.sync_engine
    try:
        task_uid = await sync_engine.clear_index()
    except _UPSTREAM_ERRORS as e:
        logger.error("index_clear_failed", error=str(e))
        return _error(500, "Failed to clear search index", str(e))
    return ClearIndexResponse(task_uid=task_uid)
