"""User model."""
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.bookmark import Bookmark


class User(Base, TimestampMixin):
    """User model - owner of bookmarks."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Bookmarks survive their owner: the FK is ON DELETE SET NULL
    bookmarks: Mapped[list["Bookmark"]] = relationship(
        back_populates="user",
        passive_deletes=True,
    )
