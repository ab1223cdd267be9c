"""Bookmark CRUD endpoints."""
from typing import Any

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, parse_request_body, validate_body
from models.base import MAX_ID
from schemas.bookmark import (
    BookmarkCreate,
    BookmarkListResponse,
    BookmarkResponse,
    BookmarkUpdate,
)
from services import bookmark_service
from services.exceptions import NotFoundError

router = APIRouter(tags=["bookmarks"])


def _not_found(bookmark_id: int) -> NotFoundError:
    return NotFoundError(f"Bookmark {bookmark_id} not found")


@router.post("", response_model=BookmarkResponse, status_code=201)
@router.post("/", response_model=BookmarkResponse, status_code=201, include_in_schema=False)
async def create_bookmark(
    body: Any = Depends(parse_request_body),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Create a new bookmark from a JSON or form-encoded body."""
    data = validate_body(BookmarkCreate, body)
    bookmark = await bookmark_service.create_bookmark(db, data)
    return BookmarkResponse.model_validate(bookmark)


@router.get("", response_model=BookmarkListResponse)
@router.get("/", response_model=BookmarkListResponse, include_in_schema=False)
async def list_bookmarks(
    offset: int = Query(default=0, ge=0, le=MAX_ID, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    user_id: int | None = Query(
        default=None, ge=1, le=MAX_ID, description="Only bookmarks owned by this user",
    ),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkListResponse:
    """List bookmarks, newest first."""
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


@router.get("/{bookmark_id}", response_model=BookmarkResponse)
async def get_bookmark(
    bookmark_id: int = Path(ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Get a single bookmark by ID."""
    bookmark = await bookmark_service.get_bookmark(db, bookmark_id)
    if bookmark is None:
        raise _not_found(bookmark_id)
    return BookmarkResponse.model_validate(bookmark)


@router.patch("/{bookmark_id}", response_model=BookmarkResponse)
@router.put("/{bookmark_id}", response_model=BookmarkResponse)
async def update_bookmark(
    bookmark_id: int = Path(ge=1, le=MAX_ID),
    body: Any = Depends(parse_request_body),
    db: AsyncSession = Depends(get_async_session),
) -> BookmarkResponse:
    """Update a bookmark. Only the fields present in the body are changed."""
    data = validate_body(BookmarkUpdate, body)
    bookmark = await bookmark_service.update_bookmark(db, bookmark_id, data)
    if bookmark is None:
        raise _not_found(bookmark_id)
    return BookmarkResponse.model_validate(bookmark)


@router.delete("/{bookmark_id}", status_code=204)
async def delete_bookmark(
    bookmark_id: int = Path(ge=1, le=MAX_ID),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a bookmark."""
    deleted = await bookmark_service.delete_bookmark(db, bookmark_id)
    if not deleted:
        raise _not_found(bookmark_id)
