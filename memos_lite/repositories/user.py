"""User repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Репозиторий пользователей (только то, что нужно для идентификации)."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_username(self, username: str) -> User | None:
        """SELECT * FROM users WHERE username = {username};"""
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()
