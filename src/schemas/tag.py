"""Pydantic schemas for tag endpoints."""
from uuid import UUID

from schemas.base import CamelModel


class TagSummary(CamelModel):
    """Tag as embedded in a bookmark response."""

    id: UUID
    name: str


class TagWithCount(CamelModel):
    """Schema for a tag with the number of bookmarks using it."""

    id: UUID
    name: str
    bookmark_count: int


class TagListResponse(CamelModel):
    """Schema for the tags list response."""

    data: list[TagWithCount]


class TagRenameRequest(CamelModel):
    """
    Schema for renaming a tag.

    `name` is optional at the schema level so a missing or blank name is
    reported as 400 by the endpoint rather than a 422 schema error.
    """

    name: str | None = None


class SuccessResponse(CamelModel):
    """Generic acknowledgement body."""

    success: bool = True
