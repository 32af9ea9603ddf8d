"""Pydantic schemas for canonical note rows and change notifications."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OwnerSummary(BaseModel):
    """Joined profile fields for a note's author.

    Attributes:
        full_name: Display name, if the profile has one.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    full_name: str | None = None


class NoteRecord(BaseModel):
    """Canonical note row as stored in the record source.

    Optional columns default so that partially-populated rows (webhook
    payloads carry no joins) still validate.

    Attributes:
        id: Opaque unique identifier, also the search index primary key.
        title: Note title.
        description: Free-text description.
        subject: Category label.
        author_id: Profile id of the owner.
        author: Joined owner summary, or None when the join is absent.
        tags: Unordered tag list.
        downloads: Download counter.
        rating_avg: Average review rating.
        is_public: Visibility flag.
        file_url: Storage URL of the attached file.
        created_at: Creation timestamp.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    title: str
    description: str | None = None
    subject: str = ""
    author_id: str | None = None
    author: OwnerSummary | None = None
    tags: list[str] | None = None
    downloads: int | None = None
    rating_avg: float | None = None
    is_public: bool = False
    file_url: str | None = None
    created_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        """Accept integer primary keys from the record source."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("author", mode="before")
    @classmethod
    def _normalize_author(cls, value: Any) -> Any:
        """Collapse list-shaped joins into a single owner or None."""
        if isinstance(value, list):
            return value[0] if value else None
        return value


class ChangeType(str, Enum):
    """Mutation kinds reported by the record source."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class OldNoteRef(BaseModel):
    """Prior row attached to a DELETE notification.

    Only the identifier is required; the record source may send a
    replica-identity row with every other column null.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        """Accept integer primary keys from the record source."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ChangeEvent(BaseModel):
    """Single insert/update/delete notification about one note.

    Attributes:
        type: Mutation kind.
        table: Source table name.
        schema_name: Source schema name (``schema`` on the wire).
        record: New row for INSERT/UPDATE.
        old_record: Prior row for DELETE.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    type: ChangeType
    table: str
    schema_name: str = Field(default="public", alias="schema")
    record: NoteRecord | None = None
    old_record: OldNoteRef | None = None
