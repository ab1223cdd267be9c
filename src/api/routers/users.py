"""User CRUD endpoints."""
from typing import Any

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, parse_request_body, validate_body
from models.base import MAX_ID
from schemas.bookmark import BookmarkListResponse, BookmarkResponse
from schemas.user import UserCreate, UserListResponse, UserResponse, UserUpdate
from services import bookmark_service, user_service
from services.exceptions import NotFoundError

router = APIRouter(tags=["users"])


def _not_found(user_id: int) -> NotFoundError:
    return NotFoundError(f"User {user_id} not found")


@router.post("", response_model=UserResponse, status_code=201)
@router.post("/", response_model=UserResponse, status_code=201, include_in_schema=False)
async def create_user(
    body: Any = Depends(parse_request_body),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Create a new user. Usernames must be unique."""
    data = validate_body(UserCreate, body)
    user = await user_service.create_user(db, data)
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse)
@router.get("/", response_model=UserListResponse, include_in_schema=False)
async def list_users(
    offset: int = Query(default=0, ge=0, le=MAX_ID, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_async_session),
) -> UserListResponse:
    """List users ordered by ID."""
    users, total = await user_service.get_users(db, offset=offset, limit=limit)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        offset=offset,
        limit=limit,
        has_more=(offset + len(users)) < total,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int = Path(ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Get a single user by ID."""
    user = await user_service.get_user(db, user_id)
    if user is None:
        raise _not_found(user_id)
    return UserResponse.model_validate(user)


@router.get("/{user_id}/bookmarks", response_model=BookmarkListResponse)
async def list_user_bookmarks(
    user_id: int = Path(ge=1, le=MAX_ID),
    offset: int = Query(default=0, ge=0, le=MAX_ID, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkListResponse:
    """List the bookmarks owned by a user, newest first."""
    if await user_service.get_user(db, user_id) is None:
        raise _not_found(user_id)
    bookmarks, total = await bookmark_service.get_bookmarks(
        db, offset=offset, limit=limit, user_id=user_id,
    )
    return BookmarkListResponse(
        items=[BookmarkResponse.model_validate(b) for b in bookmarks],
        total=total,
        offset=offset,
        limit=limit,
        has_more=(offset + len(bookmarks)) < total,
    )


@router.patch("/{user_id}", response_model=UserResponse)
@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int = Path(ge=1, le=MAX_ID),
    body: Any = Depends(parse_request_body),
    db: AsyncSession = Depends(get_async_session),
) -> UserResponse:
    """Update a user. Only the fields present in the body are changed."""
    data = validate_body(UserUpdate, body)
    user = await user_service.update_user(db, user_id, data)
    if user is None:
        raise _not_found(user_id)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int = Path(ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a user. Their bookmarks are kept without an owner."""
    deleted = await user_service.delete_user(db, user_id)
    if not deleted:
        raise _not_found(user_id)
