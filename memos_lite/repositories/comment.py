"""Comment repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Comment
from .base import BaseRepository


class CommentRepository(BaseRepository[Comment]):
    """Репозиторий для комментариев к заметкам."""

    def __init__(self, db: AsyncSession):
        super().__init__(Comment, db)

    async def get_by_memo(self, memo_id: int) -> list[Comment]:
        """
        Комментарии заметки вместе с авторами, старые первыми.

        SQL эквивалент:
            SELECT comments.*, users.username
            FROM comments JOIN users ON comments.user_id = users.id
            WHERE comments.memo_id = {memo_id}
            ORDER BY comments.created_at ASC;
        """
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.memo_id == memo_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return list(result.scalars().all())

    async def get_by_id_full(self, id: int) -> Comment | None:
        """Комментарий с автором."""
        result = await self.db.execute(
            select(Comment).options(selectinload(Comment.author)).where(Comment.id == id)
        )
        return result.scalar_one_or_none()

    async def count_by_user(self, user_id: int) -> int:
        """Сколько комментариев оставил пользователь."""
        result = await self.db.execute(
            select(func.count()).select_from(Comment).where(Comment.user_id == user_id)
        )
        return result.scalar_one()
