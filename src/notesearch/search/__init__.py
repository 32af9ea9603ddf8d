"""Search index subsystem: formatting, configuration, sync, and queries."""

from notesearch.search.engine import MeilisearchClient, SearchBackend
from notesearch.search.formatter import format_note
from notesearch.search.gateway import QueryGateway
from notesearch.search.schemas import (
    SearchDocument,
    SearchHit,
    SearchPage,
    SearchResponse,
    SyncResult,
    TaskStatus,
)
from notesearch.search.settings import IndexConfigurator
from notesearch.search.sync import SyncEngine, run_periodic_sync

__all__ = [
    "IndexConfigurator",
    "MeilisearchClient",
    "QueryGateway",
    "SearchBackend",
    "SearchDocument",
    "SearchHit",
    "SearchPage",
    "SearchResponse",
    "SyncEngine",
    "SyncResult",
    "TaskStatus",
    "format_note",
    "run_periodic_sync",
]
