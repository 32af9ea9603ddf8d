"""Full request-path scenarios across sync, webhooks, and search."""

import json
from collections.abc import Callable
from typing import Any

from fastapi.testclient import TestClient

from notesearch.webhooks.security import generate_signature
from tests.fakes import WEBHOOK_SECRET, FakeRecordSource


def _signed_post(client: TestClient, payload: dict[str, Any]) -> Any:
    body = json.dumps(payload).encode()
    return client.post(
        "/api/v1/webhooks/notes",
        content=body,
        headers={
            "Authorization": f"Bearer {generate_signature(body, WEBHOOK_SECRET)}",
            "Content-Type": "application/json",
        },
    )


def test_synced_note_is_found_with_highlight(
    client: TestClient,
    records: FakeRecordSource,
    make_row: Callable[..., dict[str, Any]],
) -> None:
    """After a full sync the note is searchable with its match highlighted."""
    records.rows = [make_row("n1", title="Intro to X", tags=[])]

    assert client.post("/api/v1/sync").status_code == 200
    data = client.get("/api/v1/search/notes", params={"q": "Intro"}).json()

    ids = [hit["id"] for hit in data["results"]]
    assert ids == ["n1"]
    assert "<mark>Intro</mark>" in data["results"][0]["_formatted"]["title"]


def test_deleted_note_disappears_from_search(
    client: TestClient,
    records: FakeRecordSource,
    make_row: Callable[..., dict[str, Any]],
) -> None:
    """A signed DELETE removes the note from subsequent searches."""
    records.rows = [make_row("n1", title="Intro to X", tags=[])]
    client.post("/api/v1/sync")

    response = _signed_post(
        client,
        {"type": "DELETE", "table": "notes", "schema": "public",
         "record": None, "old_record": {"id": "n1"}},
    )
    assert response.status_code == 200

    data = client.get("/api/v1/search/notes", params={"q": "Intro"}).json()
    assert [hit["id"] for hit in data["results"]] == []


def test_empty_sync_returns_zero_counts(client: TestClient) -> None:
    """Syncing an empty record source reports zero and does not fail."""
    data = client.post("/api/v1/sync").json()
    assert (data["synced"], data["total"]) == (0, 0)


def test_webhook_insert_then_update_keeps_one_document(
    client: TestClient,
    make_row: Callable[..., dict[str, Any]],
) -> None:
    """Insert followed by update leaves a single, current document."""
    row = make_row("n7", title="Thermodynamics basics")
    del row["author"]
    _signed_post(client, {"type": "INSERT", "table": "notes", "schema": "public",
                          "record": row, "old_record": None})
    updated = {**row, "title": "Thermodynamics advanced"}
    _signed_post(client, {"type": "UPDATE", "table": "notes", "schema": "public",
                          "record": updated, "old_record": row})

    data = client.get("/api/v1/search/notes", params={"q": "Thermodynamics"}).json()

    assert [hit["id"] for hit in data["results"]] == ["n7"]
    assert data["results"][0]["title"] == "Thermodynamics advanced"
    assert data["results"][0]["author_name"] == "Ada Lovelace"
