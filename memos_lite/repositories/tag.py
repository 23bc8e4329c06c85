"""Tag repository with specific queries."""

from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag, memo_tags, utc_now
from .base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """
    Репозиторий для работы с тегами.

    Теги глобальные и создаются лениво при первом упоминании в заметке,
    поэтому создание — всегда идемпотентный upsert по имени.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Tag, db)

    async def get_by_name(self, name: str) -> Tag | None:
        """
        Получить тег по имени (с учётом регистра).

        SQL эквивалент:
            SELECT * FROM tags WHERE name = {name};
        """
        result = await self.db.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    async def get_by_names(self, names: Iterable[str]) -> list[Tag]:
        """Получить все теги с именами из списка."""
        names = list(names)
        if not names:
            return []
        result = await self.db.execute(select(Tag).where(Tag.name.in_(names)))
        return list(result.scalars().all())

    async def upsert_names(self, names: Iterable[str]) -> list[Tag]:
        """
        Гарантировать существование тегов с данными именами.

        Args:
            names: Имена тегов (без "#")

        Returns:
            Теги в том же порядке, что и names

        Raises:
            ConflictError: только для диалектов без ON CONFLICT

        Две параллельные заметки с новым #idea не падают на уникальности:

            INSERT INTO tags (name, created_at) VALUES ('idea', ...)
            ON CONFLICT (name) DO NOTHING;
            SELECT * FROM tags WHERE name IN ('idea');
        """
        names = list(dict.fromkeys(names))
        if not names:
            return []

        existing = {tag.name for tag in await self.get_by_names(names)}
        missing = [name for name in names if name not in existing]

        if missing:
            now = utc_now()
            await self.insert_ignoring_conflicts(
                Tag.__table__,
                [{"name": name, "created_at": now} for name in missing],
                conflict_columns=["name"],
            )

        by_name = {tag.name: tag for tag in await self.get_by_names(names)}
        return [by_name[name] for name in names if name in by_name]

    async def get_with_memo_counts(self) -> list[tuple[Tag, int]]:
        """
        Все теги с количеством заметок.

        Сортировка: сначала самые используемые, при равенстве — по имени.

        SQL эквивалент:
            SELECT tags.*, COUNT(memo_tags.memo_id) AS memo_count
            FROM tags
            LEFT JOIN memo_tags ON tags.id = memo_tags.tag_id
            GROUP BY tags.id
            ORDER BY memo_count DESC, tags.name ASC;
        """
        memo_count = func.count(memo_tags.c.memo_id).label("memo_count")
        result = await self.db.execute(
            select(Tag, memo_count)
            .outerjoin(memo_tags, Tag.id == memo_tags.c.tag_id)
            .group_by(Tag.id)
            .order_by(memo_count.desc(), Tag.name.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_unused_tags(self) -> list[Tag]:
        """
        Теги без единой заметки (остаются после правки текста).

        SQL эквивалент:
            SELECT tags.* FROM tags
            LEFT JOIN memo_tags ON tags.id = memo_tags.tag_id
            WHERE memo_tags.tag_id IS NULL;
        """
        result = await self.db.execute(
            select(Tag)
            .outerjoin(memo_tags, Tag.id == memo_tags.c.tag_id)
            .where(memo_tags.c.tag_id.is_(None))
            .order_by(Tag.name)
        )
        return list(result.scalars().all())

    async def delete_by_ids(self, tag_ids: list[int]) -> int:
        """Удалить теги по ID, вернуть количество удалённых."""
        if not tag_ids:
            return 0
        result = await self.db.execute(delete(Tag).where(Tag.id.in_(tag_ids)))
        return result.rowcount
