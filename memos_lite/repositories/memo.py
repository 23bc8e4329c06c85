"""Memo repository with specific queries."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import ColumnElement, Select, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Memo, MemoState, Tag, Visibility, memo_tags
from .base import BaseRepository


@dataclass
class MemoQuery:
    """
    Готовый набор условий для выборки заметок (все условия через AND).

    Собирается сервисом из (зритель, фильтры) и выполняется репозиторием.

    Поля:
        owner_id: owner_id = X
        visibility: visibility = X
        own_or_public_for: owner_id = X OR visibility = PUBLIC
        state: state = X (None — любое состояние)
        contains: content содержит каждую подстроку (с учётом регистра)
    """

    owner_id: int | None = None
    visibility: Visibility | None = None
    own_or_public_for: int | None = None
    state: MemoState | None = MemoState.NORMAL
    contains: list[str] = field(default_factory=list)


class MemoRepository(BaseRepository[Memo]):
    """
    Репозиторий для работы с заметками.

    Включает методы для:
    - Фильтрации и сортировки списков (pinned, затем новые)
    - Работы со связями memo_tags
    - Статистики по владельцу
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Memo, db)

    async def get_by_id_full(self, id: int) -> Memo | None:
        """
        Получить заметку вместе с тегами (eager loading).

        populate_existing перечитывает объект из БД: связи memo_tags
        пишутся мимо ORM, и кэш сессии мог устареть.
        """
        result = await self.db.execute(
            select(Memo)
            .options(selectinload(Memo.tags))
            .where(Memo.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def _content_contains(self, needle: str) -> ColumnElement[bool]:
        """
        Регистрозависимая проверка вхождения подстроки.

        LIKE в SQLite игнорирует регистр ASCII, поэтому для SQLite и
        PostgreSQL используется позиционный поиск:
            SQLite:     instr(content, needle) > 0
            PostgreSQL: strpos(content, needle) > 0
        """
        if self.dialect_name == "sqlite":
            return func.instr(Memo.content, needle) > 0
        if self.dialect_name == "postgresql":
            return func.strpos(Memo.content, needle) > 0
        return Memo.content.contains(needle, autoescape=True)

    def _conditions(self, query: MemoQuery) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []

        if query.owner_id is not None:
            conditions.append(Memo.owner_id == query.owner_id)

        if query.visibility is not None:
            conditions.append(Memo.visibility == query.visibility)

        if query.own_or_public_for is not None:
            conditions.append(
                or_(
                    Memo.owner_id == query.own_or_public_for,
                    Memo.visibility == Visibility.PUBLIC,
                )
            )

        if query.state is not None:
            conditions.append(Memo.state == query.state)

        for needle in query.contains:
            conditions.append(self._content_contains(needle))

        return conditions

    def _select(self, query: MemoQuery) -> Select:
        stmt = select(Memo).options(selectinload(Memo.tags))
        conditions = self._conditions(query)
        if conditions:
            stmt = stmt.where(and_(*conditions))

        # Закреплённые всегда сверху, внутри группы — новые первыми.
        # id DESC делает порядок детерминированным при равных created_at.
        return stmt.order_by(Memo.pinned.desc(), Memo.created_at.desc(), Memo.id.desc())

    async def get_matching(
        self, query: MemoQuery, skip: int = 0, limit: int | None = None
    ) -> list[Memo]:
        """
        Получить заметки по условиям, отсортированные и с пагинацией.

        SQL эквивалент:
            SELECT * FROM memos
            WHERE <условия MemoQuery>
            ORDER BY pinned DESC, created_at DESC, id DESC
            OFFSET {skip} LIMIT {limit};

        limit=None — без ограничения (для пост-фильтрации в сервисе).
        """
        stmt = self._select(query)
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_matching(self, query: MemoQuery) -> int:
        """SELECT COUNT(*) FROM memos WHERE <условия MemoQuery>;"""
        stmt = select(func.count()).select_from(Memo)
        conditions = self._conditions(query)
        if conditions:
            stmt = stmt.where(and_(*conditions))

        result = await self.db.execute(stmt)
        return result.scalar_one()

    # ------------------------------------------------------------------
    # memo_tags
    # ------------------------------------------------------------------

    async def get_tag_names(self, memo_id: int) -> set[str]:
        """
        Имена тегов, связанных с заметкой.

        SQL эквивалент:
            SELECT tags.name FROM tags
            JOIN memo_tags ON tags.id = memo_tags.tag_id
            WHERE memo_tags.memo_id = {memo_id};
        """
        result = await self.db.execute(
            select(Tag.name)
            .join(memo_tags, Tag.id == memo_tags.c.tag_id)
            .where(memo_tags.c.memo_id == memo_id)
        )
        return set(result.scalars().all())

    async def add_tags(self, memo_id: int, tag_ids: Iterable[int]) -> None:
        """Связать заметку с тегами; уже существующие связи пропускаются."""
        await self.insert_ignoring_conflicts(
            memo_tags,
            [{"memo_id": memo_id, "tag_id": tag_id} for tag_id in dict.fromkeys(tag_ids)],
            conflict_columns=["memo_id", "tag_id"],
        )

    async def clear_tags(self, memo_id: int) -> int:
        """Удалить все связи заметки с тегами, вернуть количество строк."""
        result = await self.db.execute(delete(memo_tags).where(memo_tags.c.memo_id == memo_id))
        return result.rowcount

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_created_dates(self, owner_id: int) -> list[datetime]:
        """created_at всех заметок владельца (для календаря активности)."""
        result = await self.db.execute(
            select(Memo.created_at).where(Memo.owner_id == owner_id).order_by(Memo.created_at)
        )
        return list(result.scalars().all())

    async def get_owner_summary(self, owner_id: int) -> tuple[int, datetime | None, datetime | None]:
        """
        Количество заметок владельца и время первой/последней.

        SQL эквивалент:
            SELECT COUNT(*), MIN(created_at), MAX(created_at)
            FROM memos WHERE owner_id = {owner_id};
        """
        result = await self.db.execute(
            select(func.count(Memo.id), func.min(Memo.created_at), func.max(Memo.created_at)).where(
                Memo.owner_id == owner_id
            )
        )
        total, first, last = result.one()
        return total, first, last

    async def count_distinct_tags(self, owner_id: int) -> int:
        """Сколько разных тегов встречается в заметках владельца."""
        result = await self.db.execute(
            select(func.count(func.distinct(memo_tags.c.tag_id)))
            .select_from(memo_tags)
            .join(Memo, Memo.id == memo_tags.c.memo_id)
            .where(Memo.owner_id == owner_id)
        )
        return result.scalar_one()
