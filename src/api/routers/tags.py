"""Tag management endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from schemas.auth import AuthUser
from schemas.tag import SuccessResponse, TagListResponse, TagRenameRequest
from services import tag_service
from services.exceptions import BadRequestError

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=TagListResponse)
async def list_tags(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TagListResponse:
    """
    Get all tags for the current user with their bookmark counts.

    Tags with no bookmarks are included with a count of 0. Sorted by name.
    """
    tags = await tag_service.get_user_tags(db, current_user.id)
    return TagListResponse(data=tags)


@router.patch("/{tag_id}", response_model=SuccessResponse)
async def rename_tag(
    tag_id: UUID,
    rename_request: TagRenameRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> SuccessResponse:
    """
    Rename a tag. Every bookmark using the tag reflects the new name.

    Returns 400 if the name is missing, 404 if the tag doesn't exist,
    409 if the user already has a tag with the new name.
    """
    if rename_request.name is None:
        raise BadRequestError("Name is required")
    await tag_service.rename_tag(db, current_user.id, tag_id, rename_request.name)
    return SuccessResponse()


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a tag and detach it from all bookmarks. Returns 404 if it doesn't exist."""
    await tag_service.delete_tag(db, current_user.id, tag_id)
