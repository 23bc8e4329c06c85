"""Comment service."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Comment
from ..repositories import CommentRepository
from .access import Authenticated, Viewer, sanitize_content
from .memo import MemoService


class CommentService:
    """
    Комментарии к заметкам (плоские, без веток).

    Доступ к комментариям = доступ к самой заметке: кто не видит
    заметку, тот не видит и не может комментировать её.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.comment_repo = CommentRepository(db)
        self.memo_service = MemoService(db)

    async def list_comments(self, viewer: Viewer, memo_id: int | str) -> list[Comment]:
        """
        Комментарии заметки, старые первыми.

        Raises:
            NotFoundError / AccessDeniedError: как у MemoService.get_memo
        """
        memo = await self.memo_service.get_memo(viewer, memo_id)
        return await self.comment_repo.get_by_memo(memo.id)

    async def add_comment(self, author: Authenticated, memo_id: int | str, content: str) -> Comment:
        """
        Добавить комментарий к видимой заметке.

        Raises:
            ValidationError: пустой комментарий
            NotFoundError / AccessDeniedError: заметки нет или она недоступна
        """
        content = sanitize_content(content)
        memo = await self.memo_service.get_memo(author, memo_id)

        comment = await self.comment_repo.create(
            Comment(memo_id=memo.id, user_id=author.user_id, content=content)
        )
        await self.db.flush()

        return await self.comment_repo.get_by_id_full(comment.id)
