"""API layer - FastAPI endpoints."""

from .memos import router as memos_router
from .tags import router as tags_router
from .users import router as users_router

__all__ = [
    "memos_router",
    "tags_router",
    "users_router",
]
