"""Pytest configuration and fixtures."""

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from notesearch.app import create_app
from notesearch.config import Settings
from notesearch.search.gateway import QueryGateway
from notesearch.search.sync import SyncEngine
from tests.fakes import WEBHOOK_SECRET, FakeRecordSource, FakeSearchBackend


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8000,
        debug=True,
        meilisearch_host="http://fake-meilisearch:7700",
        meilisearch_api_key="test-master-key",
        supabase_url="http://fake-supabase",
        supabase_key="test-service-key",
        webhook_secret=WEBHOOK_SECRET,
        sync_page_size=2,
    )


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """Build a note row as the record source returns it."""

    def _make(note_id: str = "n1", **overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": note_id,
            "title": "Intro to X",
            "description": "Lecture notes",
            "subject": "Mathematics",
            "author_id": "u1",
            "author": {"full_name": "Ada Lovelace"},
            "tags": ["algebra"],
            "downloads": 3,
            "rating_avg": 4.5,
            "is_public": True,
            "file_url": "https://files.example/n1.pdf",
            "created_at": "2026-01-15T10:00:00+00:00",
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def backend() -> FakeSearchBackend:
    """Fresh in-memory search engine."""
    return FakeSearchBackend()


@pytest.fixture
def records() -> FakeRecordSource:
    """Empty in-memory record source."""
    return FakeRecordSource(owners={"u1": "Ada Lovelace"})


@pytest.fixture
def sync_engine(backend: FakeSearchBackend, records: FakeRecordSource) -> SyncEngine:
    """Sync engine wired to the fakes."""
    return SyncEngine(backend, records, page_size=2)


@pytest.fixture
def gateway(backend: FakeSearchBackend) -> QueryGateway:
    """Query gateway wired to the fake engine."""
    return QueryGateway(backend)


@pytest.fixture
def client(
    settings: Settings,
    backend: FakeSearchBackend,
    records: FakeRecordSource,
) -> Iterator[TestClient]:
    """Create test client with configured app and fake collaborators."""
    app = create_app(settings, search_backend=backend, record_source=records)
    with TestClient(app) as test_client:
        yield test_client
