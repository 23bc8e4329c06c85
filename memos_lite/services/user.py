"""User service: identity lookup and per-user statistics."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError, ValidationError
from ..models import User, UserRole
from ..repositories import CommentRepository, MemoRepository, UserRepository
from .access import Authenticated, clamp_limit, clamp_offset


class UserService:
    """
    Сервис пользователей.

    Пароли и токены — забота внешнего провайдера идентичности;
    сервис знает только id, имя и роль.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.memo_repo = MemoRepository(db)
        self.comment_repo = CommentRepository(db)

    async def create_user(
        self, username: str, password_hash: str, role: UserRole = UserRole.USER
    ) -> User:
        """
        Зарегистрировать пользователя.

        Raises:
            ValidationError: пустое имя или имя уже занято
        """
        if not username or not username.strip():
            raise ValidationError("Username cannot be empty", field="username")

        username = username.strip()
        if await self.user_repo.get_by_username(username):
            raise ValidationError(f"User '{username}' already exists", field="username")

        user = await self.user_repo.create(
            User(username=username, password_hash=password_hash, role=role)
        )
        await self.db.flush()
        return user

    async def get_user(self, user_id: int) -> User:
        """Raises NotFoundError, если пользователя нет."""
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def list_users(self, limit: int | None = None, offset: int | None = None) -> list[User]:
        """
        Все пользователи по порядку регистрации (для администратора).

        limit/offset прижимаются так же, как в списке заметок.
        """
        return await self.user_repo.get_all(skip=clamp_offset(offset), limit=clamp_limit(limit))

    async def resolve_viewer(self, user_id: int) -> Authenticated | None:
        """
        Превратить ID, подтверждённый провайдером идентичности, в зрителя.

        None — такого пользователя в БД нет.
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            return None
        return Authenticated(user_id=user.id, role=user.role)

    async def get_user_stats(self, user_id: int) -> dict:
        """
        Статистика пользователя.

        Пример:
            {
                "total_memos": 42,
                "total_tags": 7,
                "total_comments": 5,
                "first_memo_at": datetime(...),
                "last_memo_at": datetime(...)
            }
        """
        await self.get_user(user_id)

        total_memos, first_memo_at, last_memo_at = await self.memo_repo.get_owner_summary(user_id)

        return {
            "user_id": user_id,
            "total_memos": total_memos,
            "total_tags": await self.memo_repo.count_distinct_tags(user_id),
            "total_comments": await self.comment_repo.count_by_user(user_id),
            "first_memo_at": first_memo_at,
            "last_memo_at": last_memo_at,
        }
