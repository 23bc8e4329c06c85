"""Service layer with business logic."""

from .access import (
    ANONYMOUS,
    MAX_ID,
    Anonymous,
    Authenticated,
    MemoFilters,
    StateFilter,
    Viewer,
    VisibilityFilter,
)
from .comment import CommentService
from .memo import MemoPage, MemoService
from .tag import TagService
from .tag_sync import TagSynchronizer, extract_tags
from .user import UserService

__all__ = [
    "ANONYMOUS",
    "MAX_ID",
    "Anonymous",
    "Authenticated",
    "Viewer",
    "MemoFilters",
    "VisibilityFilter",
    "StateFilter",
    "MemoService",
    "MemoPage",
    "TagService",
    "TagSynchronizer",
    "extract_tags",
    "CommentService",
    "UserService",
]
