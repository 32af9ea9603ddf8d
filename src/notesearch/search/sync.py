"""Keeps the search index converged with the record source."""

import asyncio
from typing import Any

import structlog
from pydantic import ValidationError

from notesearch.errors import InvalidChangeEventError
from notesearch.records.schemas import ChangeEvent, ChangeType, NoteRecord
from notesearch.records.source import RecordSource
from notesearch.search.engine import SearchBackend
from notesearch.search.formatter import format_note
from notesearch.search.schemas import SearchDocument, SyncResult, TaskStatus

logger = structlog.get_logger()

_UPSERT_TYPES: frozenset[ChangeType] = frozenset({ChangeType.INSERT, ChangeType.UPDATE})


class SyncEngine:
    """Applies full resyncs and single-record change events to the index.

    Only public notes are written. A change event that makes a note
    private evicts its document, so the index never holds private notes
    and a full resync agrees with the per-event path.

    Engine failures propagate to the caller unchanged; nothing is retried.
    """

    def __init__(
        self,
        backend: SearchBackend,
        records: RecordSource,
        notes_table: str = "notes",
        page_size: int = 500,
    ) -> None:
        """Initialize sync engine.

        Args:
            backend: Search engine client.
            records: Record source to read notes and owners from.
            notes_table: Table whose change events this engine accepts.
            page_size: Rows fetched per page during a full sync.
        """
        self._backend = backend
        self._records = records
        self._notes_table = notes_table
        self._page_size = page_size

    async def sync_all(self) -> SyncResult:
        """Read every public note and upsert all of them in one batch.

        Reads are paged; the write is a single request regardless of
        record count. Rows that fail validation are skipped and counted
        in ``total`` but not in ``synced``.

        Returns:
            Counts of records read and documents queued, plus the engine
            task uid for the batch.
        """
        total = 0
        documents: list[dict[str, Any]] = []

        async for rows in self._records.iter_public_rows(self._page_size):
            total += len(rows)
            for row in rows:
                try:
                    record = NoteRecord.model_validate(row)
                except ValidationError as e:
                    logger.warning(
                        "sync_row_skipped",
                        note_id=row.get("id"),
                        errors=e.error_count(),
                    )
                    continue
                documents.append(format_note(record).model_dump())

        if not documents:
            logger.info("sync_all_empty", total=total)
            return SyncResult(synced=0, total=total)

        task_uid = await self._backend.add_documents(documents)
        logger.info("sync_all_queued", synced=len(documents), total=total, task_uid=task_uid)
        return SyncResult(synced=len(documents), total=total, task_uid=task_uid)

    async def apply_event(self, event: ChangeEvent) -> None:
        """Apply one change notification to the index.

        Args:
            event: Parsed change notification.

        Raises:
            InvalidChangeEventError: If the event targets another table.
        """
        if event.table != self._notes_table:
            raise InvalidChangeEventError(
                f"Unexpected table {event.table!r}, expected {self._notes_table!r}"
            )

        if event.type in _UPSERT_TYPES:
            if event.record is None:
                logger.warning("change_event_missing_record", type=event.type.value)
                return
            if not event.record.is_public:
                await self.remove(event.record.id)
                return
            await self.upsert(event.record)
            return

        if event.old_record is None:
            logger.warning("change_event_missing_old_record", type=event.type.value)
            return
        await self.remove(event.old_record.id)

    async def upsert(self, record: NoteRecord) -> SearchDocument:
        """Create or fully replace the document for one note.

        Args:
            record: Canonical note row.

        Returns:
            The document that was written.
        """
        resolved = await self._resolve_owner(record)
        document = format_note(resolved)
        task_uid = await self._backend.add_documents([document.model_dump()])
        logger.info("search_document_upserted", note_id=document.id, task_uid=task_uid)
        return document

    async def remove(self, note_id: str) -> None:
        """Delete the document for one note. Absent documents are fine.

        Args:
            note_id: Primary key of the document.
        """
        task_uid = await self._backend.delete_document(note_id)
        logger.info("search_document_deleted", note_id=note_id, task_uid=task_uid)

    async def _resolve_owner(self, record: NoteRecord) -> NoteRecord:
        """Attach the owner summary when the row arrived without its join.

        A failed lookup leaves the owner unset, which formats as
        "Anonymous".
        """
        if record.author is not None or not record.author_id:
            return record
        try:
            owner = await self._records.fetch_owner(record.author_id)
        except Exception:
            logger.warning(
                "owner_lookup_failed",
                note_id=record.id,
                author_id=record.author_id,
                exc_info=True,
            )
            return record
        if owner is None:
            return record
        return record.model_copy(update={"author": owner})

    async def clear_index(self) -> int:
        """Remove every document from the index.

        Returns:
            Engine task uid.
        """
        task_uid = await self._backend.delete_all_documents()
        logger.info("search_index_cleared", task_uid=task_uid)
        return task_uid

    async def index_stats(self) -> dict[str, Any]:
        """Return the engine's statistics for the index."""
        return await self._backend.get_stats()

    async def task_status(self, task_uid: int) -> TaskStatus:
        """Poll the engine for an asynchronous task's progress.

        Args:
            task_uid: Task id returned by a write.

        Returns:
            Current task status.
        """
        return TaskStatus.model_validate(await self._backend.get_task(task_uid))


async def run_periodic_sync(sync_engine: SyncEngine, interval: float) -> None:
    """Run a full sync every ``interval`` seconds until cancelled.

    A failed run is logged and the next run proceeds on schedule, since
    a full sync is safe to repeat.

    Args:
        sync_engine: Engine to run.
        interval: Seconds between runs.
    """
    logger.info("periodic_sync_started", interval_seconds=interval)
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                result = await sync_engine.sync_all()
            except Exception:
                logger.exception("periodic_sync_failed")
            else:
                logger.info(
                    "periodic_sync_completed",
                    synced=result.synced,
                    total=result.total,
                    task_uid=result.task_uid,
                )
    except asyncio.CancelledError:
        logger.info("periodic_sync_stopped")
        raise
