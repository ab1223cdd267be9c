"""Pydantic schemas for bookmark endpoints."""
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from models.base import MAX_ID

TAG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def validate_and_normalize_tags(tags: list[str] | str) -> list[str]:
    """
    Normalize tags: lowercase, validate format (alphanumeric + hyphens only).

    Format: lowercase alphanumeric with hyphens (e.g., 'machine-learning', 'web-dev')
    Pattern: ^[a-z0-9]+(-[a-z0-9]+)*$

    Blank tags are dropped and duplicates collapse to their first occurrence.
    """
    if isinstance(tags, str):
        # A single urlencoded `tags=python` arrives as a bare string
        tags = [tags]
    elif not isinstance(tags, list):
        raise ValueError("Tags must be a list of strings")
    normalized: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValueError(f"Invalid tag: {tag!r}. Tags must be strings.")
        normalized_tag = tag.lower().strip()
        if not normalized_tag:
            continue
        if not TAG_PATTERN.match(normalized_tag):
            raise ValueError(
                f"Invalid tag format: '{normalized_tag}'. "
                "Use lowercase letters, numbers, and hyphens only (e.g., 'machine-learning').",
            )
        if normalized_tag not in normalized:
            normalized.append(normalized_tag)
    return normalized


class BookmarkCreate(BaseModel):
    """Schema for creating a new bookmark."""

    # HttpUrl normalizes root domains with trailing slash (example.com -> example.com/)
    # but preserves paths as-is (example.com/page stays example.com/page)
    url: HttpUrl
    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    tags: list[str] = []
    user_id: int | None = Field(default=None, ge=1, le=MAX_ID)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize and validate tags."""
        if v is None:
            return []
        return validate_and_normalize_tags(v)


class BookmarkUpdate(BaseModel):
    """Schema for updating an existing bookmark. Only fields sent are changed."""

    # See BookmarkCreate for HttpUrl normalization behavior
    url: HttpUrl | None = None
    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    tags: list[str] | None = None
    user_id: int | None = Field(default=None, ge=1, le=MAX_ID)

    @field_validator("url")
    @classmethod
    def reject_null_url(cls, v: HttpUrl | None) -> HttpUrl:
        """A bookmark always has a URL; it can be replaced but not cleared."""
        if v is None:
            raise ValueError("url cannot be null")
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize and validate tags if provided. null clears the tags."""
        if v is None:
            return []
        return validate_and_normalize_tags(v)


class BookmarkResponse(BaseModel):
    """Schema for bookmark responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    url: str
    title: str | None
    description: str | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime


class BookmarkListResponse(BaseModel):
    """Schema for paginated bookmark list responses."""

    items: list[BookmarkResponse]
    total: int  # Total count of bookmarks matching the query (before pagination)
    offset: int  # Current pagination offset
    limit: int  # Current pagination limit
    has_more: bool  # True if there are more results beyond this page
