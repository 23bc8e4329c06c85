"""Memo model."""

import enum

from sqlalchemy import Boolean, ForeignKey, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class Visibility(str, enum.Enum):
    """Memo visibility enum."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class MemoState(str, enum.Enum):
    """Memo lifecycle state."""

    NORMAL = "NORMAL"
    ARCHIVED = "ARCHIVED"


class Memo(Base, TimestampMixin):
    """
    Заметка пользователя (Markdown).

    content — единственный источник правды для тегов:
    связи в memo_tags всегда выводятся из текста и никогда не задаются руками.
    """

    __tablename__ = "memos"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        SQLEnum(Visibility, native_enum=False), default=Visibility.PRIVATE, nullable=False
    )
    pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    state: Mapped[MemoState] = mapped_column(
        SQLEnum(MemoState, native_enum=False), default=MemoState.NORMAL, nullable=False
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="memos")

    # Связи пишет TagSynchronizer напрямую в memo_tags, поэтому viewonly
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary="memo_tags", back_populates="memos", viewonly=True, order_by="Tag.name"
    )

    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="memo", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        preview = self.content[:30] + "..." if len(self.content) > 30 else self.content
        return f"<Memo(id={self.id}, owner_id={self.owner_id}, visibility={self.visibility.value}, content='{preview}')>"
