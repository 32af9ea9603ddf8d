"""Projection of canonical note rows into search documents."""

from datetime import UTC, datetime, timedelta

from notesearch.records.schemas import NoteRecord
from notesearch.search.schemas import SearchDocument

ANONYMOUS_AUTHOR = "Anonymous"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)


def to_epoch_ms(value: datetime) -> int:
    """Convert a timestamp to integer epoch milliseconds.

    Naive timestamps are read as UTC. Integer division keeps the result
    exact instead of going through a float.

    Args:
        value: Timestamp to convert.

    Returns:
        Milliseconds since the Unix epoch.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // _ONE_MS


def _dedupe(tags: list[str] | None) -> list[str]:
    if not tags:
        return []
    return list(dict.fromkeys(tags))


def format_note(record: NoteRecord) -> SearchDocument:
    """Build the search document for a note.

    Total and deterministic: every optional field has a default and the
    same record always yields an equal document.

    Args:
        record: Canonical note row, with owner already resolved if possible.

    Returns:
        Denormalized document keyed by the record id.
    """
    author_name = ANONYMOUS_AUTHOR
    if record.author is not None and record.author.full_name:
        author_name = record.author.full_name

    return SearchDocument(
        id=record.id,
        title=record.title,
        description=record.description or "",
        subject=record.subject,
        author_id=record.author_id or "",
        author_name=author_name,
        tags=_dedupe(record.tags),
        downloads=record.downloads or 0,
        rating_avg=record.rating_avg or 0.0,
        is_public=record.is_public,
        file_url=record.file_url or "",
        created_at=to_epoch_ms(record.created_at),
    )
