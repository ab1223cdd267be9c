"""SQLAlchemy declarative base with common mixins."""
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Largest id an INTEGER column holds on every supported backend (32-bit in PostgreSQL)
MAX_ID = 2**31 - 1


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at columns.

    Timestamps are timezone-aware where the backend supports it (TIMESTAMP WITH
    TIME ZONE in PostgreSQL). updated_at is bumped by the database on every UPDATE.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        index=True,  # Index for "sort by recently updated" queries
    )
