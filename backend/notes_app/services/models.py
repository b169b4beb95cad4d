"""
Data models for notes persistence and listings.

Uses Pydantic for validation and serialization.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

CONTENT_PREVIEW_CHARS = 200


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Make timestamps UTC-aware; naive values (SQLite) are already UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SortOrder(str, Enum):
    """Supported orderings for note listings."""
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        """Parse a query-string value, defaulting to newest for unknown input."""
        try:
            return cls(value) if value else cls.NEWEST
        except ValueError:
            return cls.NEWEST

    @property
    def column(self) -> str:
        return "title" if self in (SortOrder.TITLE_ASC, SortOrder.TITLE_DESC) else "created_at"

    @property
    def ascending(self) -> bool:
        return self in (SortOrder.OLDEST, SortOrder.TITLE_ASC)


class Note(BaseModel):
    """Complete note row as stored by either path"""
    id: str
    user_id: str
    title: str
    content: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class NoteSummary(BaseModel):
    """Listing row with a truncated content preview"""
    id: str
    title: str
    content: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @classmethod
    def preview(cls, content: Optional[str]) -> Optional[str]:
        if content is None:
            return None
        return content[:CONTENT_PREVIEW_CHARS]


class NoteUpdate(BaseModel):
    """Partial update; only fields that are set are written"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class Pagination(BaseModel):
    """Pagination block returned alongside a listing page"""
    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_notes: int = Field(..., ge=0)
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total_notes: int) -> "Pagination":
        total_pages = math.ceil(total_notes / limit) if limit > 0 else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_notes=total_notes,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class NotePage(BaseModel):
    """One page of a sorted listing"""
    notes: List[NoteSummary] = Field(default_factory=list)
    pagination: Pagination
