"""Canonical note rows and the record source that serves them."""

from notesearch.records.schemas import ChangeEvent, ChangeType, NoteRecord, OwnerSummary
from notesearch.records.source import RecordSource, SupabaseRecordSource

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "NoteRecord",
    "OwnerSummary",
    "RecordSource",
    "SupabaseRecordSource",
]
