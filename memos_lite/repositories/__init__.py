"""Repository layer for data access."""

from .base import BaseRepository
from .comment import CommentRepository
from .memo import MemoQuery, MemoRepository
from .tag import TagRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "MemoRepository",
    "MemoQuery",
    "TagRepository",
    "UserRepository",
    "CommentRepository",
]
