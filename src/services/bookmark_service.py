"""Service layer for bookmark CRUD operations."""
import logging
from uuid import UUID

from sqlalchemy import Select, delete, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.base import utcnow
from models.bookmark import Bookmark
from models.tag import bookmark_tags
from schemas.bookmark import BookmarkCreate, BookmarkUpdate
from services import tag_service
from services.exceptions import ForbiddenError, NotFoundError
from services.url_scraper import MetadataFetcher
from services.utils import contains_pattern

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


def _with_tags(stmt: Select) -> Select:
    # Associations are written through Core, so reloads must overwrite
    # whatever tag collection is already in the identity map
    return stmt.options(selectinload(Bookmark.tags)).execution_options(populate_existing=True)


async def _reload(db: AsyncSession, bookmark_id: UUID) -> Bookmark:
    result = await db.execute(_with_tags(select(Bookmark).where(Bookmark.id == bookmark_id)))
    return result.scalar_one()


async def create_bookmark(
    db: AsyncSession,
    user_id: UUID,
    data: BookmarkCreate,
    fetcher: MetadataFetcher,
) -> Bookmark:
    """
    Create a new bookmark for a user.

    Flow:
    1. If no title was supplied, fetch the URL's metadata (best-effort; the
       fetcher falls back to the URL as title and never raises)
    2. Supplied description wins over the fetched one; empty becomes null
    3. Insert the bookmark, then upsert its tags and link them
    4. Return the bookmark re-read with its tags

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    title = data.title
    description = data.description

    if not title:
        metadata = await fetcher.fetch(data.url)
        title = metadata.title
        description = description or metadata.description

    bookmark = Bookmark(
        user_id=user_id,
        url=data.url,
        title=title,
        description=description or None,
    )
    db.add(bookmark)
    await db.flush()

    if data.tags:
        tag_ids = await tag_service.get_or_create_tags(db, user_id, data.tags)
        await tag_service.sync_bookmark_tags(db, bookmark.id, tag_ids)

    logger.info("bookmark_created bookmark_id=%s user_id=%s", bookmark.id, user_id)
    return await _reload(db, bookmark.id)


async def get_bookmark(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
) -> Bookmark:
    """
    Get a bookmark with its tags.

    Raises:
        NotFoundError: If no bookmark has this ID.
        ForbiddenError: If the bookmark belongs to another user.
    """
    result = await db.execute(_with_tags(select(Bookmark).where(Bookmark.id == bookmark_id)))
    bookmark = result.scalar_one_or_none()
    if bookmark is None:
        raise NotFoundError("Bookmark not found")
    if bookmark.user_id != user_id:
        raise ForbiddenError("Access denied")
    return bookmark


async def list_bookmarks(
    db: AsyncSession,
    user_id: UUID,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    is_archived: bool | None = None,
    tag_id: UUID | None = None,
    search: str | None = None,
) -> list[Bookmark]:
    """
    List a user's bookmarks, newest first.

    Args:
        db: Database session.
        user_id: Owner whose bookmarks are listed.
        limit: Maximum number of results.
        offset: Number of results to skip.
        is_archived: If given, only bookmarks with this archived state.
        tag_id: If given, only bookmarks linked to this tag.
        search: If given, case-insensitive substring match against title,
            description or url. Wildcards in the input match literally.

    Returns:
        Bookmarks with tags loaded, ordered by created_at desc then id desc.
    """
    stmt = select(Bookmark).where(Bookmark.user_id == user_id)

    if is_archived is not None:
        stmt = stmt.where(Bookmark.is_archived == is_archived)

    if tag_id is not None:
        stmt = stmt.where(
            exists().where(
                bookmark_tags.c.bookmark_id == Bookmark.id,
                bookmark_tags.c.tag_id == tag_id,
            ),
        )

    if search:
        pattern = contains_pattern(search)
        stmt = stmt.where(
            or_(
                Bookmark.title.ilike(pattern, escape="\\"),
                Bookmark.description.ilike(pattern, escape="\\"),
                Bookmark.url.ilike(pattern, escape="\\"),
            ),
        )

    stmt = (
        stmt.order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(_with_tags(stmt))
    return list(result.scalars().all())


async def update_bookmark(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
    data: BookmarkUpdate,
) -> Bookmark:
    """
    Update a bookmark with the fields present in `data`.

    A present `tags` list (even empty) replaces the full tag set. An explicit
    null for `isArchived` or `tags` is treated as "not supplied".

    Raises:
        NotFoundError: If no bookmark has this ID.
        ForbiddenError: If the bookmark belongs to another user.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, user_id, bookmark_id)

    update_data = data.model_dump(exclude_unset=True)
    tags = update_data.pop("tags", None)
    if update_data.get("is_archived") is None:
        update_data.pop("is_archived", None)

    for field, value in update_data.items():
        setattr(bookmark, field, value)
    # Set explicitly so tag-only updates also bump the timestamp
    bookmark.updated_at = utcnow()
    await db.flush()

    if tags is not None:
        tag_ids = await tag_service.get_or_create_tags(db, user_id, tags)
        await tag_service.sync_bookmark_tags(db, bookmark.id, tag_ids)

    return await _reload(db, bookmark.id)


async def set_archived(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
    is_archived: bool,
) -> Bookmark:
    """Archive or unarchive a bookmark. Ownership rules as in `get_bookmark`."""
    return await update_bookmark(
        db, user_id, bookmark_id, BookmarkUpdate(is_archived=is_archived),
    )


async def delete_bookmark(
    db: AsyncSession,
    user_id: UUID,
    bookmark_id: UUID,
) -> None:
    """
    Delete a bookmark and its tag associations. Tags themselves are kept.

    Raises:
        NotFoundError: If no bookmark has this ID.
        ForbiddenError: If the bookmark belongs to another user.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, user_id, bookmark_id)

    await db.execute(delete(bookmark_tags).where(bookmark_tags.c.bookmark_id == bookmark.id))
    await db.delete(bookmark)
    await db.flush()
    logger.info("bookmark_deleted bookmark_id=%s user_id=%s", bookmark_id, user_id)
