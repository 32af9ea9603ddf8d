"""FastAPI application factory and lifespan management."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from notesearch.config import Settings
from notesearch.errors import IndexConfigurationError
from notesearch.middleware.auth import AdminKeyMiddleware
from notesearch.middleware.cors import configure_cors
from notesearch.middleware.logging import RequestLoggingMiddleware
from notesearch.records.source import RecordSource, SupabaseRecordSource
from notesearch.routes import health, search, sync, webhooks
from notesearch.search import (
    IndexConfigurator,
    MeilisearchClient,
    QueryGateway,
    SearchBackend,
    SyncEngine,
    run_periodic_sync,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Opens the search engine connection pool (when the app owns it),
    applies the index configuration, and starts the periodic full sync
    if one is configured. Closes everything on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    owned_client: MeilisearchClient | None = app.state.owned_client
    logger.info("api_startup", host=settings.host, port=settings.port)

    if owned_client is not None:
        await owned_client.start()

    if not settings.webhook_secret:
        logger.error("webhook_secret_missing", detail="webhook endpoint will reject all events")

    try:
        await app.state.index_configurator.initialize()
    except IndexConfigurationError as e:
        logger.error("index_configuration_failed", failed_groups=e.failed_groups, error=str(e))

    sync_task: asyncio.Task[None] | None = None
    if settings.sync_interval_seconds > 0:
        sync_task = asyncio.create_task(
            run_periodic_sync(app.state.sync_engine, settings.sync_interval_seconds)
        )

    try:
        yield
    finally:
        if sync_task is not None:
            sync_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sync_task

        if owned_client is not None:
            await owned_client.close()

        logger.info("api_shutdown")


def create_app(
    settings: Settings | None = None,
    *,
    search_backend: SearchBackend | None = None,
    record_source: RecordSource | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    The search engine client and record source are built once here and
    shared by every request. Pass them in to substitute fakes; injected
    clients are not started or closed by the app.

    Args:
        settings: Configuration instance. Creates default if None.
        search_backend: Search engine client. Built from settings if None.
        record_source: Record source. Built from settings if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()  # type: ignore[call-arg]

    owned_client: MeilisearchClient | None = None
    if search_backend is None:
        owned_client = MeilisearchClient(
            host=settings.meilisearch_host,
            api_key=settings.meilisearch_api_key,
            index_uid=settings.notes_index,
            timeout=settings.search_timeout,
        )
        search_backend = owned_client

    if record_source is None:
        record_source = SupabaseRecordSource.from_credentials(
            settings.supabase_url,
            settings.supabase_key,
            notes_table=settings.notes_table,
        )

    app = FastAPI(
        title="Campus Notes Search API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.owned_client = owned_client
    app.state.search_backend = search_backend
    app.state.index_configurator = IndexConfigurator(
        search_backend, max_total_hits=settings.max_total_hits
    )
    app.state.sync_engine = SyncEngine(
        search_backend,
        record_source,
        notes_table=settings.notes_table,
        page_size=settings.sync_page_size,
    )
    app.state.query_gateway = QueryGateway(search_backend)

    configure_cors(app, settings.cors_origins)
    app.add_middleware(RequestLoggingMiddleware)
    if settings.admin_key:
        app.add_middleware(AdminKeyMiddleware, api_key=settings.admin_key)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(search.router, prefix="/api/v1")
    app.include_router(sync.router, prefix="/api/v1")
    app.include_router(webhooks.router, prefix="/api/v1")

    return app
