"""Pydantic schemas for bookmark endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from schemas.base import CamelModel
from schemas.tag import TagSummary
from schemas.validators import validate_tag_names

MAX_TITLE_LENGTH = 500


class BookmarkCreate(CamelModel):
    """
    Schema for creating a new bookmark.

    `url` is a plain string here; it is checked by the endpoint so that an
    invalid URL is reported as 400 rather than a 422 schema error.
    """

    url: str
    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    description: str | None = None
    tags: list[str] = []

    @field_validator("tags")
    @classmethod
    def check_tag_lengths(cls, v: list[str]) -> list[str]:
        """Reject tag names longer than the column allows."""
        return validate_tag_names(v)


class BookmarkUpdate(CamelModel):
    """
    Schema for updating an existing bookmark.

    Only fields present in the request are applied. `tags`, when present
    (even as an empty list), replaces the bookmark's full tag set.
    """

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    description: str | None = None
    is_archived: bool | None = None
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def check_tag_lengths(cls, v: list[str] | None) -> list[str] | None:
        """Reject tag names longer than the column allows."""
        return validate_tag_names(v)


class BookmarkResponse(CamelModel):
    """Schema for bookmark responses (bookmark joined with its tags)."""

    id: UUID
    url: str
    title: str | None
    description: str | None
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    user_id: UUID
    tags: list[TagSummary]


class BookmarkListResponse(CamelModel):
    """Schema for the bookmark list response."""

    data: list[BookmarkResponse]
