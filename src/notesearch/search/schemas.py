"""Pydantic schemas for indexed documents, sync results, and search responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchDocument(BaseModel):
    """Denormalized note projection stored in the search index.

    Attributes:
        id: Primary key, equal to the canonical record id.
        title: Note title.
        description: Description, empty when absent.
        subject: Category label.
        author_id: Owner profile id, empty when absent.
        author_name: Resolved owner display name or "Anonymous".
        tags: Tag list, empty when absent.
        downloads: Download counter.
        rating_avg: Average review rating.
        is_public: Visibility flag.
        file_url: Storage URL, empty when absent.
        created_at: Creation time as epoch milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    subject: str
    author_id: str
    author_name: str
    tags: list[str]
    downloads: int
    rating_avg: float
    is_public: bool
    file_url: str
    created_at: int


class SearchHit(SearchDocument):
    """Indexed document returned by a query, with highlight spans.

    Attributes:
        formatted: Copies of the highlighted fields with match markers,
            serialized as ``_formatted``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    formatted: dict[str, Any] | None = Field(default=None, alias="_formatted")


class SearchPage(BaseModel):
    """Ranked hits for one query plus engine metadata.

    Attributes:
        hits: Matching documents in rank order.
        total_estimate: Engine estimate of total matches (not exact).
        took_ms: Engine-reported processing time.
    """

    hits: list[SearchHit]
    total_estimate: int
    took_ms: int


class SearchResponse(BaseModel):
    """Search API response envelope.

    Attributes:
        success: Always True for a completed query.
        results: Ranked hits with highlight spans.
        total: Engine estimate of total matches.
        query: The original query string.
        processing_time: Engine processing time in milliseconds.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    results: list[SearchHit]
    total: int
    query: str
    processing_time: int = Field(alias="processingTime")


class SyncResult(BaseModel):
    """Outcome of a full sync.

    ``synced`` only means the batch was accepted by the engine; poll
    ``task_uid`` to learn when indexing completed.

    Attributes:
        synced: Documents queued for indexing.
        total: Records read from the record source.
        task_uid: Engine task id for the bulk upsert, None if nothing was sent.
    """

    synced: int
    total: int
    task_uid: int | None = None


class TaskStatus(BaseModel):
    """Engine-side status of an asynchronous indexing task.

    Attributes:
        uid: Task id.
        status: enqueued, processing, succeeded, failed, or canceled.
        type: Task kind reported by the engine.
        error: Engine error object when the task failed.
    """

    model_config = ConfigDict(extra="ignore")

    uid: int
    status: str
    type: str | None = None
    error: dict[str, Any] | None = None
