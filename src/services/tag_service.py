"""Service layer for tag operations and bookmark-tag associations."""
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from models.base import utcnow
from models.tag import Tag, bookmark_tags
from schemas.tag import TagWithCount
from schemas.validators import MAX_TAG_NAME_LENGTH
from services.exceptions import BadRequestError, ConflictError, NotFoundError


def normalize_tag_name(name: str) -> str:
    """Normalize a tag name: trim surrounding whitespace and lowercase."""
    return name.strip().lower()


def normalize_tag_names(names: Iterable[str]) -> list[str]:
    """
    Normalize, drop empties and dedupe tag names.

    Order follows the first occurrence of each normalized name, e.g.
    `["Foo", "bar", " FOO "]` -> `["foo", "bar"]`.
    """
    normalized = (normalize_tag_name(name) for name in names)
    return list(dict.fromkeys(name for name in normalized if name))


def _insert_ignore_conflicts(db: AsyncSession) -> postgresql.Insert | sqlite.Insert:
    """Return the dialect-specific insert construct that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(Tag.__table__)
    if dialect == "sqlite":
        return sqlite.insert(Tag.__table__)
    raise NotImplementedError(f"Tag upsert is not supported on dialect '{dialect}'")


async def get_or_create_tags(
    db: AsyncSession,
    user_id: UUID,
    tag_names: list[str],
) -> list[UUID]:
    """
    Get existing tags or create new ones, scoped to a user.

    Creation is a single `INSERT ... ON CONFLICT (user_id, name) DO NOTHING`,
    so concurrent requests creating the same tag converge on one row instead
    of failing or duplicating.

    Args:
        db: Database session.
        user_id: User ID to scope tags.
        tag_names: Raw tag names (normalized and deduplicated here).

    Returns:
        Tag IDs in order of first occurrence of each unique normalized name.
    """
    names = normalize_tag_names(tag_names)
    if not names:
        return []

    now = utcnow()
    stmt = _insert_ignore_conflicts(db).values(
        [{"id": uuid7(), "user_id": user_id, "name": name, "created_at": now} for name in names],
    )
    await db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id", "name"]))

    result = await db.execute(
        select(Tag.id, Tag.name).where(
            Tag.user_id == user_id,
            Tag.name.in_(names),
        ),
    )
    ids_by_name = {row.name: row.id for row in result}
    return [ids_by_name[name] for name in names]


async def sync_bookmark_tags(
    db: AsyncSession,
    bookmark_id: UUID,
    tag_ids: list[UUID],
) -> None:
    """
    Replace a bookmark's full tag association set.

    Deletes every existing association, then inserts the given set. Both
    statements run in the caller's transaction, so a half-updated set is
    never committed.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    await db.execute(
        delete(bookmark_tags).where(bookmark_tags.c.bookmark_id == bookmark_id),
    )
    unique_ids = list(dict.fromkeys(tag_ids))
    if unique_ids:
        await db.execute(
            insert(bookmark_tags),
            [{"bookmark_id": bookmark_id, "tag_id": tag_id} for tag_id in unique_ids],
        )


async def get_user_tags(db: AsyncSession, user_id: UUID) -> list[TagWithCount]:
    """
    Get all tags for a user with the number of bookmarks using each.

    Counts include archived bookmarks. Tags with no bookmarks are included
    with a count of 0.

    Returns:
        List of TagWithCount sorted by name ascending.
    """
    # LEFT JOIN so unused tags appear; COUNT ignores the NULLs they produce
    result = await db.execute(
        select(
            Tag.id,
            Tag.name,
            func.count(bookmark_tags.c.bookmark_id).label("bookmark_count"),
        )
        .outerjoin(bookmark_tags, Tag.id == bookmark_tags.c.tag_id)
        .where(Tag.user_id == user_id)
        .group_by(Tag.id, Tag.name)
        .order_by(Tag.name.asc()),
    )
    return [
        TagWithCount(id=row.id, name=row.name, bookmark_count=row.bookmark_count)
        for row in result
    ]


async def get_tag(db: AsyncSession, user_id: UUID, tag_id: UUID) -> Tag | None:
    """Get a tag by ID, scoped to user. Returns None if not found or wrong user."""
    result = await db.execute(
        select(Tag).where(
            Tag.id == tag_id,
            Tag.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def get_tag_by_name(db: AsyncSession, user_id: UUID, tag_name: str) -> Tag | None:
    """Get a tag by (normalized) name for a user."""
    result = await db.execute(
        select(Tag).where(
            Tag.user_id == user_id,
            Tag.name == normalize_tag_name(tag_name),
        ),
    )
    return result.scalar_one_or_none()


async def rename_tag(
    db: AsyncSession,
    user_id: UUID,
    tag_id: UUID,
    new_name: str,
) -> Tag:
    """
    Rename a tag.

    Every bookmark using the tag reflects the new name, since associations
    reference the tag by ID.

    Returns:
        The updated Tag.

    Raises:
        NotFoundError: If the tag doesn't exist or belongs to another user.
        BadRequestError: If the new name is empty after normalization or too long.
        ConflictError: If the user already has another tag with the new name.
    """
    tag = await get_tag(db, user_id, tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")

    normalized = normalize_tag_name(new_name)
    if not normalized:
        raise BadRequestError("Name is required")
    if len(normalized) > MAX_TAG_NAME_LENGTH:
        raise BadRequestError(
            f"Tag name exceeds maximum length of {MAX_TAG_NAME_LENGTH} characters",
        )
    if normalized == tag.name:
        return tag

    # Early check for a clear error; the unique constraint backs it up below
    existing = await get_tag_by_name(db, user_id, normalized)
    if existing is not None:
        raise ConflictError(f"Tag '{normalized}' already exists")

    tag.name = normalized
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        # Handle race condition: another request created the tag between check and flush
        if "uq_tags_user_id_name" in str(e) or "UNIQUE" in str(e):
            raise ConflictError(f"Tag '{normalized}' already exists") from e
        raise
    return tag


async def delete_tag(db: AsyncSession, user_id: UUID, tag_id: UUID) -> None:
    """
    Delete a tag and its bookmark associations. Bookmarks themselves are kept.

    Raises:
        NotFoundError: If the tag doesn't exist or belongs to another user.
    """
    tag = await get_tag(db, user_id, tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")

    # Explicit cleanup; the FK's ON DELETE CASCADE covers the same rows
    await db.execute(delete(bookmark_tags).where(bookmark_tags.c.tag_id == tag.id))
    await db.delete(tag)
    await db.flush()
