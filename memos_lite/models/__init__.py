"""SQLAlchemy models for Memos Lite."""

from .base import Base, TimestampMixin, utc_now
from .comment import Comment
from .memo import Memo, MemoState, Visibility
from .memo_tag import memo_tags
from .tag import Tag
from .user import User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "utc_now",
    "User",
    "UserRole",
    "Memo",
    "MemoState",
    "Visibility",
    "Tag",
    "memo_tags",
    "Comment",
]
