"""HTTP client for the hosted search engine (Meilisearch REST API).

Wraps ``httpx.AsyncClient`` with:
- base URL and bearer API key
- index-scoped document, settings, and search endpoints
- translation of non-2xx responses into ``SearchEngineError``
- translation of transport failures into ``SearchEngineUnavailableError``
- connection-pool lifecycle tied to the FastAPI lifespan

Requests are never retried here. Callers decide whether a failure is
fatal; webhook redelivery is the record source's job.
"""

from __future__ import annotations

import time
from typing import Any, Protocol
from urllib.parse import quote

import httpx
import structlog

from notesearch.errors import SearchEngineError, SearchEngineUnavailableError

logger = structlog.get_logger()


class SearchBackend(Protocol):
    """Operations the sync engine and query gateway need from the engine."""

    @property
    def host(self) -> str: ...

    async def health(self) -> bool: ...

    async def update_setting(self, group: str, value: Any) -> int: ...

    async def add_documents(self, documents: list[dict[str, Any]]) -> int: ...

    async def delete_document(self, document_id: str) -> int | None: ...

    async def delete_all_documents(self) -> int: ...

    async def search(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def get_stats(self) -> dict[str, Any]: ...

    async def get_task(self, task_uid: int) -> dict[str, Any]: ...


class MeilisearchClient:
    """Async client bound to one Meilisearch index."""

    def __init__(
        self,
        host: str,
        api_key: str,
        index_uid: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client (call start() before use).

        Args:
            host: Engine base URL.
            api_key: Admin API key sent as a bearer token.
            index_uid: Index all document operations target.
            timeout: Per-request timeout in seconds.
            transport: Optional transport override, used by tests.
        """
        self._host = host.rstrip("/")
        self._api_key = api_key
        self._index_uid = index_uid
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def host(self) -> str:
        """Engine base URL."""
        return self._host

    @property
    def index_uid(self) -> str:
        """Name of the bound index."""
        return self._index_uid

    async def start(self) -> None:
        """Create the underlying connection pool. Idempotent."""
        if self._http is not None:
            return
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        self._http = httpx.AsyncClient(
            base_url=self._host,
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
            transport=self._transport,
        )
        logger.info("search_engine_client_started", host=self._host, index=self._index_uid)

    async def close(self) -> None:
        """Close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("search_engine_client_closed")

    def _ensure_started(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("MeilisearchClient not started; call start() first")
        return self._http

    def _index_path(self, suffix: str = "") -> str:
        return f"/indexes/{quote(self._index_uid, safe='')}{suffix}"

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and decode the JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the engine host.
            json_body: JSON-serializable request body.
            params: Query string parameters.

        Returns:
            Decoded JSON response, or an empty dict for an empty body.

        Raises:
            SearchEngineUnavailableError: On connection or timeout failures.
            SearchEngineError: On any non-2xx response.
        """
        client = self._ensure_started()
        start = time.perf_counter()
        try:
            response = await client.request(method, path, json=json_body, params=params)
        except httpx.TransportError as e:
            logger.error(
                "search_engine_unreachable",
                method=method,
                path=path,
                error=str(e),
            )
            raise SearchEngineUnavailableError(self._host, str(e)) from e

        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "search_engine_request",
            method=method,
            path=path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        if response.status_code >= 400:
            raise SearchEngineError(
                status_code=response.status_code,
                detail=_error_detail(response),
                url=str(response.url),
            )

        if not response.content:
            return {}
        return response.json()

    async def health(self) -> bool:
        """Check whether the engine reports itself available.

        Returns:
            True if the engine answered with status "available".
        """
        try:
            body = await self._request("GET", "/health")
        except (SearchEngineError, SearchEngineUnavailableError) as e:
            logger.warning("search_engine_health_failed", error=str(e))
            return False
        return body.get("status") == "available"

    async def update_setting(self, group: str, value: Any) -> int:
        """Replace one index setting group.

        List-valued groups are replaced with PUT; object-valued groups are
        merged with PATCH, matching the engine's settings API.

        Args:
            group: Settings sub-route, e.g. "searchable-attributes".
            value: New value for the group.

        Returns:
            Engine task uid.
        """
        method = "PATCH" if isinstance(value, dict) else "PUT"
        body = await self._request(method, self._index_path(f"/settings/{group}"), json_body=value)
        return int(body["taskUid"])

    async def add_documents(self, documents: list[dict[str, Any]]) -> int:
        """Create or fully replace documents keyed by ``id``.

        Args:
            documents: Documents to write in one batch.

        Returns:
            Engine task uid.
        """
        body = await self._request(
            "POST",
            self._index_path("/documents"),
            json_body=documents,
            params={"primaryKey": "id"},
        )
        return int(body["taskUid"])

    async def delete_document(self, document_id: str) -> int | None:
        """Delete one document by id.

        A 404 (index or document absent) already satisfies the goal and is
        returned as None instead of raising.

        Args:
            document_id: Primary key of the document.

        Returns:
            Engine task uid, or None when there was nothing to delete.
        """
        path = self._index_path(f"/documents/{quote(document_id, safe='')}")
        try:
            body = await self._request("DELETE", path)
        except SearchEngineError as e:
            if e.status_code == 404:
                return None
            raise
        return int(body["taskUid"])

    async def delete_all_documents(self) -> int:
        """Remove every document from the index.

        Returns:
            Engine task uid.
        """
        body = await self._request("DELETE", self._index_path("/documents"))
        return int(body["taskUid"])

    async def search(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Run a search request against the index.

        Args:
            payload: Engine search body (q, filter, sort, highlight options).

        Returns:
            Raw engine response with hits and metadata.
        """
        result: dict[str, Any] = await self._request(
            "POST", self._index_path("/search"), json_body=payload
        )
        return result

    async def get_stats(self) -> dict[str, Any]:
        """Fetch index statistics (document count, indexing state)."""
        result: dict[str, Any] = await self._request("GET", self._index_path("/stats"))
        return result

    async def get_task(self, task_uid: int) -> dict[str, Any]:
        """Fetch the status of an asynchronous engine task."""
        result: dict[str, Any] = await self._request("GET", f"/tasks/{task_uid}")
        return result


def _error_detail(response: httpx.Response) -> str:
    """Extract the engine's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] if response.text else f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:500]
