"""Tag model."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utc_now


class Tag(Base):
    """
    Тег, выведенный из `#name` в тексте заметок.

    Пространство имён глобальное (общее для всех пользователей),
    имена регистрозависимы: `Work` и `work` — разные теги.
    """

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Relationships
    memos: Mapped[list["Memo"]] = relationship(
        "Memo", secondary="memo_tags", back_populates="tags", viewonly=True
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"
