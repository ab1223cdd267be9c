"""Service layer for user CRUD operations."""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User
from schemas.user import UserCreate, UserUpdate
from services.exceptions import ConflictError

logger = logging.getLogger(__name__)


async def _ensure_username_available(
    db: AsyncSession,
    username: str,
    exclude_user_id: int | None = None,
) -> None:
    """Raise ConflictError if another user already has this username."""
    query = select(User.id).where(User.username == username)
    if exclude_user_id is not None:
        query = query.where(User.id != exclude_user_id)
    if await db.scalar(query) is not None:
        raise ConflictError(f"Username '{username}' is already taken")


async def _flush_username(db: AsyncSession, username: str) -> None:
    """Flush pending user changes, mapping a unique-index violation to ConflictError."""
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        # Another request claimed the username between the check and the flush
        if "username" in str(e):
            raise ConflictError(f"Username '{username}' is already taken") from e
        raise


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """
    Create a new user.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    await _ensure_username_available(db, data.username)

    user = User(username=data.username, email=data.email)
    db.add(user)
    await _flush_username(db, data.username)
    await db.refresh(user)
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by ID. Returns None if not found."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_users(
    db: AsyncSession,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[User], int]:
    """Get users ordered by ID. Returns (users for this page, total count)."""
    total = await db.scalar(select(func.count()).select_from(User))
    result = await db.execute(
        select(User).order_by(User.id).offset(offset).limit(limit),
    )
    return list(result.scalars().all()), total or 0


async def update_user(
    db: AsyncSession,
    user_id: int,
    data: UserUpdate,
) -> User | None:
    """
    Update a user. Returns None if not found.

    Note: Does not commit. Caller (session generator) handles commit at request end.
    """
    user = await get_user(db, user_id)
    if user is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    if "username" in update_data and update_data["username"] != user.username:
        await _ensure_username_available(db, update_data["username"], user.id)

    for field, value in update_data.items():
        setattr(user, field, value)

    await _flush_username(db, user.username)
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> bool:
    """
    Delete a user. Returns True if deleted, False if not found.

    The user's bookmarks are kept; the database nulls their user_id.
    """
    user = await get_user(db, user_id)
    if user is None:
        return False

    await db.delete(user)
    await db.flush()
    logger.info("Deleted user %s", user_id)
    return True
