"""In-memory stand-ins for the search engine and the record source."""

from collections.abc import AsyncIterator
from typing import Any

from notesearch.errors import SearchEngineError, SearchEngineUnavailableError
from notesearch.records.schemas import OwnerSummary

WEBHOOK_SECRET = "test-webhook-secret"

_SEARCHABLE = ("title", "description", "subject", "author_name", "tags")


def _split_and(expr: str) -> list[str]:
    """Split a filter on top-level AND, ignoring ANDs inside quoted strings."""
    parts: list[str] = []
    buf: list[str] = []
    in_string = False
    escaped = False
    i = 0
    while i < len(expr):
        ch = expr[i]
        if in_string:
            buf.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            buf.append(ch)
            i += 1
            continue
        if expr.startswith(" AND ", i):
            parts.append("".join(buf))
            buf = []
            i += len(" AND ")
            continue
        buf.append(ch)
        i += 1
    parts.append("".join(buf))
    return parts


def _unescape(literal: str) -> str:
    out: list[str] = []
    chars = iter(literal)
    for ch in chars:
        if ch == "\\":
            out.append(next(chars, ""))
        else:
            out.append(ch)
    return "".join(out)


def _parse_clause(clause: str) -> tuple[str, Any]:
    clause = clause.strip()
    if clause.startswith("(") and clause.endswith(")"):
        clause = clause[1:-1].strip()
    attr, sep, raw = clause.partition(" = ")
    if not sep:
        raise SearchEngineError(400, f"invalid filter clause: {clause}")
    raw = raw.strip()
    if raw == "true":
        return attr.strip(), True
    if raw == "false":
        return attr.strip(), False
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return attr.strip(), _unescape(raw[1:-1])
    raise SearchEngineError(400, f"invalid filter value: {raw}")


def _highlight(text: str, terms: list[str], pre: str, post: str) -> str:
    words = text.split(" ")
    marked = [
        f"{pre}{word}{post}"
        if any(word.lower().startswith(term) for term in terms)
        else word
        for word in words
    ]
    return " ".join(marked)


class FakeSearchBackend:
    """Dictionary-backed index that honors upsert, delete, filter, and sort."""

    host = "http://fake-meilisearch:7700"

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.settings: dict[str, Any] = {}
        self.tasks: dict[int, dict[str, Any]] = {}
        self.search_payloads: list[dict[str, Any]] = []
        self.add_calls = 0
        self.healthy = True
        self.unreachable = False
        self.write_error: Exception | None = None
        self.rejected_groups: set[str] = set()
        self._next_uid = 0

    def _task(self, kind: str) -> int:
        uid = self._next_uid
        self._next_uid += 1
        self.tasks[uid] = {"uid": uid, "status": "succeeded", "type": kind, "error": None}
        return uid

    def _check_reachable(self) -> None:
        if self.unreachable:
            raise SearchEngineUnavailableError(self.host, "connection refused")

    async def health(self) -> bool:
        return self.healthy and not self.unreachable

    async def update_setting(self, group: str, value: Any) -> int:
        self._check_reachable()
        if group in self.rejected_groups:
            raise SearchEngineError(400, f"invalid {group}")
        self.settings[group] = value
        return self._task("settingsUpdate")

    async def add_documents(self, documents: list[dict[str, Any]]) -> int:
        self._check_reachable()
        if self.write_error is not None:
            raise self.write_error
        self.add_calls += 1
        for document in documents:
            self.documents[document["id"]] = dict(document)
        return self._task("documentAdditionOrUpdate")

    async def delete_document(self, document_id: str) -> int | None:
        self._check_reachable()
        if self.write_error is not None:
            raise self.write_error
        self.documents.pop(document_id, None)
        return self._task("documentDeletion")

    async def delete_all_documents(self) -> int:
        self._check_reachable()
        self.documents.clear()
        return self._task("documentDeletion")

    async def search(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._check_reachable()
        self.search_payloads.append(payload)

        predicates = [_parse_clause(c) for c in _split_and(payload.get("filter", ""))]
        terms = [t.lower() for t in payload.get("q", "").split()]

        matches: list[dict[str, Any]] = []
        for document in self.documents.values():
            if any(document.get(attr) != value for attr, value in predicates):
                continue
            haystack = " ".join(
                " ".join(v) if isinstance(v, list) else str(v)
                for v in (document.get(f, "") for f in _SEARCHABLE)
            ).lower()
            words = haystack.split()
            if all(any(w.startswith(t) for w in words) for t in terms):
                matches.append(document)

        if payload.get("sort") == ["created_at:desc"]:
            matches.sort(key=lambda d: d["created_at"], reverse=True)

        offset = payload.get("offset", 0)
        limit = payload.get("limit", 20)
        pre = payload.get("highlightPreTag", "<em>")
        post = payload.get("highlightPostTag", "</em>")

        hits = []
        for document in matches[offset : offset + limit]:
            formatted = dict(document)
            for attr in payload.get("attributesToHighlight", []):
                formatted[attr] = _highlight(str(document.get(attr, "")), terms, pre, post)
            hits.append({**document, "_formatted": formatted})

        return {
            "hits": hits,
            "estimatedTotalHits": len(matches),
            "processingTimeMs": 1,
        }

    async def get_stats(self) -> dict[str, Any]:
        self._check_reachable()
        return {"numberOfDocuments": len(self.documents), "isIndexing": False}

    async def get_task(self, task_uid: int) -> dict[str, Any]:
        self._check_reachable()
        if task_uid not in self.tasks:
            raise SearchEngineError(404, f"Task `{task_uid}` not found.")
        return self.tasks[task_uid]


class FakeRecordSource:
    """Serves note rows and owner names from memory."""

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        owners: dict[str, str] | None = None,
    ) -> None:
        self.rows = rows or []
        self.owners = owners or {}
        self.owner_error: Exception | None = None
        self.read_error: Exception | None = None
        self.pages_served = 0

    async def iter_public_rows(self, page_size: int = 500) -> AsyncIterator[list[dict[str, Any]]]:
        if self.read_error is not None:
            raise self.read_error
        public = [row for row in self.rows if row.get("is_public") is True]
        public.sort(key=lambda row: str(row["id"]))
        for start in range(0, len(public), page_size):
            self.pages_served += 1
            yield public[start : start + page_size]

    async def fetch_owner(self, author_id: str) -> OwnerSummary | None:
        if self.owner_error is not None:
            raise self.owner_error
        name = self.owners.get(author_id)
        if name is None:
            return None
        return OwnerSummary(full_name=name)
