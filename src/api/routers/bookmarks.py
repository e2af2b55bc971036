"""Bookmark CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_current_user,
    get_metadata_fetcher,
    get_settings,
)
from core.config import Settings
from schemas.auth import AuthUser
from schemas.bookmark import (
    BookmarkCreate,
    BookmarkListResponse,
    BookmarkResponse,
    BookmarkUpdate,
)
from services import bookmark_service
from services.exceptions import BadRequestError, ValidationError
from services.url_scraper import MetadataFetcher, is_valid_url

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
async def create_bookmark(
    data: BookmarkCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    fetcher: MetadataFetcher = Depends(get_metadata_fetcher),
) -> BookmarkResponse:
    """
    Create a new bookmark.

    If no title is given, the page title and description are fetched from the
    URL (best-effort; falls back to the URL as title). Returns 400 for an
    invalid URL.
    """
    if not is_valid_url(data.url):
        raise BadRequestError("Invalid URL")
    bookmark = await bookmark_service.create_bookmark(db, current_user.id, data, fetcher)
    return BookmarkResponse.model_validate(bookmark)


@router.get("", response_model=BookmarkListResponse)
async def list_bookmarks(
    limit: int = Query(default=bookmark_service.DEFAULT_LIMIT, ge=1),
    offset: int = Query(default=0, ge=0),
    is_archived: bool | None = Query(default=None, alias="isArchived"),
    tag_id: UUID | None = Query(default=None, alias="tagId"),
    search: str | None = Query(default=None),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> BookmarkListResponse:
    """
    List the current user's bookmarks, newest first.

    Filters combine with AND. `search` matches title, description or url,
    case-insensitively.
    """
    if settings.max_page_limit is not None and limit > settings.max_page_limit:
        message = f"limit must be at most {settings.max_page_limit}"
        raise ValidationError(message, errors={"limit": message})

    bookmarks = await bookmark_service.list_bookmarks(
        db,
        current_user.id,
        limit=limit,
        offset=offset,
        is_archived=is_archived,
        tag_id=tag_id,
        search=search,
    )
    return BookmarkListResponse(
        data=[BookmarkResponse.model_validate(bookmark) for bookmark in bookmarks],
    )


@router.get("/{bookmark_id}", response_model=BookmarkResponse)
async def get_bookmark(
    bookmark_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Get a single bookmark. Returns 404 if missing, 403 if owned by another user."""
    bookmark = await bookmark_service.get_bookmark(db, current_user.id, bookmark_id)
    return BookmarkResponse.model_validate(bookmark)


@router.patch("/{bookmark_id}", response_model=BookmarkResponse)
async def update_bookmark(
    bookmark_id: UUID,
    data: BookmarkUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Update a bookmark. A supplied `tags` list replaces the full tag set."""
    bookmark = await bookmark_service.update_bookmark(db, current_user.id, bookmark_id, data)
    return BookmarkResponse.model_validate(bookmark)


@router.delete("/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bookmark(
    bookmark_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a bookmark. Its tags are kept."""
    await bookmark_service.delete_bookmark(db, current_user.id, bookmark_id)


@router.post("/{bookmark_id}/archive", response_model=BookmarkResponse)
async def archive_bookmark(
    bookmark_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Archive a bookmark."""
    bookmark = await bookmark_service.set_archived(db, current_user.id, bookmark_id, True)
    return BookmarkResponse.model_validate(bookmark)


@router.post("/{bookmark_id}/unarchive", response_model=BookmarkResponse)
async def unarchive_bookmark(
    bookmark_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Restore an archived bookmark."""
    bookmark = await bookmark_service.set_archived(db, current_user.id, bookmark_id, False)
    return BookmarkResponse.model_validate(bookmark)
