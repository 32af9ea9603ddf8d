"""Read-only access to canonical note rows in the record source (Supabase)."""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol, TypeVar

import structlog
from supabase import Client, create_client

from notesearch.errors import RecordSourceError
from notesearch.records.schemas import OwnerSummary

logger = structlog.get_logger()

# Left join so notes whose author has no profile row are still returned
NOTE_COLUMNS = "*, author:profiles!left(full_name)"

PROFILES_TABLE = "profiles"

T = TypeVar("T")


class RecordSource(Protocol):
    """Operations the sync engine needs from the record source."""

    def iter_public_rows(self, page_size: int) -> AsyncIterator[list[dict[str, Any]]]: ...

    async def fetch_owner(self, author_id: str) -> OwnerSummary | None: ...


class SupabaseRecordSource:
    """Pages through note rows with the synchronous Supabase client.

    Each blocking call runs in a worker thread so the event loop stays
    free while the record source answers.
    """

    def __init__(self, client: Client, notes_table: str = "notes") -> None:
        """Initialize with a configured Supabase client.

        Args:
            client: Supabase client.
            notes_table: Table holding note rows.
        """
        self._client = client
        self._notes_table = notes_table

    @classmethod
    def from_credentials(
        cls, url: str, key: str, notes_table: str = "notes"
    ) -> "SupabaseRecordSource":
        """Create a record source from a project URL and service key."""
        return cls(create_client(url, key), notes_table=notes_table)

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a blocking client call in a worker thread.

        Raises:
            RecordSourceError: If the client call fails for any reason.
        """
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.error("record_source_query_failed", error=str(e))
            raise RecordSourceError(str(e)) from e

    def _fetch_public_page(self, start: int, end: int) -> list[dict[str, Any]]:
        response = (
            self._client.table(self._notes_table)
            .select(NOTE_COLUMNS)
            .eq("is_public", True)
            .order("id")
            .range(start, end)
            .execute()
        )
        return list(response.data or [])

    def _fetch_owner_row(self, author_id: str) -> dict[str, Any] | None:
        response = (
            self._client.table(PROFILES_TABLE)
            .select("full_name")
            .eq("id", author_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else None

    async def iter_public_rows(
        self, page_size: int = 500
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield raw public note rows one page at a time, ordered by id.

        Args:
            page_size: Rows requested per page.

        Yields:
            Row dicts for each non-empty page.
        """
        start = 0
        while True:
            rows = await self._call(self._fetch_public_page, start, start + page_size - 1)
            logger.debug("note_page_fetched", offset=start, rows=len(rows))
            if rows:
                yield rows
            if len(rows) < page_size:
                return
            start += page_size

    async def fetch_owner(self, author_id: str) -> OwnerSummary | None:
        """Look up the owner summary for a profile id.

        Args:
            author_id: Profile id.

        Returns:
            Owner summary, or None when no profile row exists.
        """
        row = await self._call(self._fetch_owner_row, author_id)
        if row is None:
            return None
        return OwnerSummary.model_validate(row)
