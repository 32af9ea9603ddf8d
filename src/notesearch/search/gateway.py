"""Query-time translation, visibility enforcement, and highlighting."""

from typing import Any

import structlog
from pydantic import ValidationError

from notesearch.search.engine import SearchBackend
from notesearch.search.schemas import SearchHit, SearchPage

logger = structlog.get_logger()

VISIBILITY_FILTER = "is_public = true"

HIGHLIGHT_ATTRIBUTES: list[str] = ["title", "description", "subject"]
HIGHLIGHT_PRE_TAG = "<mark>"
HIGHLIGHT_POST_TAG = "</mark>"

RECENCY_SORT: list[str] = ["created_at:desc"]


def quote_filter_value(value: str) -> str:
    """Quote a value for use inside a filter expression.

    Backslashes and double quotes are escaped so the value cannot close
    the string and inject operators.

    Args:
        value: Raw user-supplied value.

    Returns:
        Double-quoted, escaped filter literal.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_filter(subject: str | None = None) -> str:
    """Build the filter expression for a search.

    The visibility predicate is always present and joined with AND, so
    no caller-supplied value can widen the result set.

    Args:
        subject: Optional category to restrict results to.

    Returns:
        Filter expression for the engine.
    """
    clauses: list[str] = []
    if subject:
        clauses.append(f"(subject = {quote_filter_value(subject)})")
    clauses.append(VISIBILITY_FILTER)
    return " AND ".join(clauses)


def build_search_payload(
    query: str,
    subject: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> dict[str, Any]:
    """Translate a user search request into the engine's search body.

    Args:
        query: Free-text query, possibly empty.
        subject: Optional category filter.
        limit: Maximum hits to return.
        offset: Hits to skip.

    Returns:
        Engine search request body.
    """
    payload: dict[str, Any] = {
        "q": query,
        "filter": build_filter(subject),
        "limit": limit,
        "offset": offset,
        "attributesToHighlight": HIGHLIGHT_ATTRIBUTES,
        "highlightPreTag": HIGHLIGHT_PRE_TAG,
        "highlightPostTag": HIGHLIGHT_POST_TAG,
    }
    # Relevance is meaningless without terms; show newest first
    if not query.strip():
        payload["sort"] = RECENCY_SORT
    return payload


class QueryGateway:
    """Single entry point for user-facing note search."""

    def __init__(self, backend: SearchBackend) -> None:
        """Initialize gateway.

        Args:
            backend: Search engine client.
        """
        self._backend = backend

    async def search(
        self,
        query: str,
        subject: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> SearchPage:
        """Search public notes.

        Args:
            query: Free-text query, possibly empty.
            subject: Optional category filter.
            limit: Maximum hits to return.
            offset: Hits to skip.

        Returns:
            Ranked hits with highlight spans and engine metadata. The
            total is the engine's estimate, not an exact count.
        """
        payload = build_search_payload(query, subject, limit, offset)
        raw = await self._backend.search(payload)

        hits: list[SearchHit] = []
        for raw_hit in raw.get("hits", []):
            try:
                hit = SearchHit.model_validate(raw_hit)
            except ValidationError as e:
                logger.warning(
                    "search_hit_invalid",
                    note_id=raw_hit.get("id"),
                    errors=e.error_count(),
                )
                continue
            if hit.is_public is not True:
                logger.warning("search_private_hit_dropped", note_id=hit.id)
                continue
            hits.append(hit)

        return SearchPage(
            hits=hits,
            total_estimate=raw.get("estimatedTotalHits", 0),
            took_ms=raw.get("processingTimeMs", 0),
        )
