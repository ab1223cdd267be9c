"""Pydantic schemas for user endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserCreate(BaseModel):
    """Schema for creating a new user."""

    username: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v: object) -> object:
        """Strip surrounding whitespace before length checks."""
        return v.strip() if isinstance(v, str) else v


class UserUpdate(BaseModel):
    """Schema for updating an existing user. Only fields sent are changed."""

    username: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v: object) -> object:
        """Strip surrounding whitespace before length checks."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def reject_null_username(cls, v: str | None) -> str:
        """Usernames can be changed but not cleared."""
        if v is None:
            raise ValueError("username cannot be null")
        return v


class UserResponse(BaseModel):
    """Response model for user info."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str | None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    """Schema for paginated user list responses."""

    items: list[UserResponse]
    total: int
    offset: int
    limit: int
    has_more: bool
