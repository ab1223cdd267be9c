"""Service layer for bookmark CRUD operations."""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.bookmark import Bookmark
from models.user import User
from schemas.bookmark import BookmarkCreate, BookmarkUpdate
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


async def _ensure_user_exists(db: AsyncSession, user_id: int) -> None:
    """Raise NotFoundError if a bookmark would point at a missing user."""
    if await db.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")


async def create_bookmark(
    db: AsyncSession,
    data: BookmarkCreate,
) -> Bookmark:
    """
    Create a new bookmark.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    if data.user_id is not None:
        await _ensure_user_exists(db, data.user_id)

    bookmark = Bookmark(
        user_id=data.user_id,
        url=str(data.url),
        title=data.title,
        description=data.description,
        tags=data.tags,
    )
    db.add(bookmark)
    await db.flush()
    await db.refresh(bookmark)
    logger.info("Created bookmark %s for %s", bookmark.id, bookmark.url)
    return bookmark


async def get_bookmark(
    db: AsyncSession,
    bookmark_id: int,
) -> Bookmark | None:
    """Get a bookmark by ID. Returns None if not found."""
    result = await db.execute(
        select(Bookmark).where(Bookmark.id == bookmark_id),
    )
    return result.scalar_one_or_none()


async def get_bookmarks(
    db: AsyncSession,
    offset: int = 0,
    limit: int = 50,
    user_id: int | None = None,
) -> tuple[list[Bookmark], int]:
    """
    Get bookmarks, newest first, with pagination.

    Returns a tuple of (bookmarks for this page, total matching count).
    """
    filters = []
    if user_id is not None:
        filters.append(Bookmark.user_id == user_id)

    total = await db.scalar(
        select(func.count()).select_from(Bookmark).where(*filters),
    )
    result = await db.execute(
        select(Bookmark)
        .where(*filters)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .offset(offset)
        .limit(limit),
    )
    return list(result.scalars().all()), total or 0


async def update_bookmark(
    db: AsyncSession,
    bookmark_id: int,
    data: BookmarkUpdate,
) -> Bookmark | None:
    """
    Update a bookmark. Returns None if not found.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, bookmark_id)
    if bookmark is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("user_id") is not None:
        await _ensure_user_exists(db, update_data["user_id"])
    if "url" in update_data:
        update_data["url"] = str(data.url)

    for field, value in update_data.items():
        setattr(bookmark, field, value)

    await db.flush()
    await db.refresh(bookmark)
    return bookmark


async def delete_bookmark(
    db: AsyncSession,
    bookmark_id: int,
) -> bool:
    """
    Delete a bookmark. Returns True if deleted, False if not found.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    bookmark = await get_bookmark(db, bookmark_id)
    if bookmark is None:
        return False

    await db.delete(bookmark)
    await db.flush()
    logger.info("Deleted bookmark %s", bookmark_id)
    return True
