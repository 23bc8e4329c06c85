"""Base repository with common CRUD operations."""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Table, delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError
from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Репозиторий только читает и пишет строки: никаких правил доступа,
    никакого commit — транзакцией управляет сессия запроса (get_db).

    Пример:
        repo = BaseRepository[Memo](Memo, db_session)
        memo = await repo.get_by_id(1)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def dialect_name(self) -> str:
        """Имя диалекта текущей сессии: "sqlite", "postgresql", ..."""
        return self.db.get_bind().dialect.name

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись.

        flush() отправляет INSERT в рамках текущей транзакции (без commit),
        refresh() подтягивает ID и значения по умолчанию.
        """
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: int) -> ModelType | None:
        """Получить объект по первичному ключу или None."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self, skip: int = 0, limit: int = 100) -> list[ModelType]:
        """Получить записи с пагинацией (OFFSET/LIMIT)."""
        result = await self.db.execute(
            select(self.model).order_by(self.model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def update(self, obj: ModelType, **kwargs: Any) -> ModelType:
        """
        Обновить переданные поля уже загруженного объекта.

        Неизвестные атрибуты игнорируются.

        Пример:
            memo = await repo.update(memo, pinned=True, state=MemoState.ARCHIVED)
        """
        for key, value in kwargs.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: int) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если удалено, False если записи не было

        Зависимые строки удаляет сама БД (ON DELETE CASCADE).
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def count(self) -> int:
        """SELECT COUNT(*) FROM table;"""
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def insert_ignoring_conflicts(
        self, table: Table, rows: Sequence[dict[str, Any]], conflict_columns: Sequence[str]
    ) -> None:
        """
        Идемпотентная вставка: строки, нарушающие уникальность, пропускаются.

        PostgreSQL и SQLite:
            INSERT ... ON CONFLICT (conflict_columns) DO NOTHING;

        Для остальных диалектов — обычный INSERT в savepoint; нарушение
        уникальности превращается в ConflictError, внешняя транзакция
        остаётся рабочей.
        """
        if not rows:
            return

        if self.dialect_name == "postgresql":
            stmt = postgresql.insert(table).on_conflict_do_nothing(index_elements=conflict_columns)
        elif self.dialect_name == "sqlite":
            stmt = sqlite.insert(table).on_conflict_do_nothing(index_elements=conflict_columns)
        else:
            try:
                async with self.db.begin_nested():
                    await self.db.execute(insert(table), list(rows))
            except IntegrityError as e:
                raise ConflictError(f"Unique constraint hit on {table.name}") from e
            return

        await self.db.execute(stmt, list(rows))
