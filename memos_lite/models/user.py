"""User model."""

import enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """User role enum."""

    USER = "USER"
    ADMIN = "ADMIN"


class User(Base, TimestampMixin):
    """
    Пользователь — владелец заметок.

    Пароль хеширует внешний провайдер идентичности,
    здесь хранится только готовый хеш.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, native_enum=False), default=UserRole.USER, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    memos: Mapped[list["Memo"]] = relationship(
        "Memo", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role={self.role.value})>"
