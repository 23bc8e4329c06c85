"""Tag service with business logic."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import Tag
from ..repositories import TagRepository

logger = get_logger(__name__)


class TagService:
    """
    Сервис для работы с тегами.

    Теги нельзя создать или переименовать руками: их порождает
    TagSynchronizer из текста заметок. Здесь — только чтение
    и уборка осиротевших тегов.
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса."""
        self.db = db
        self.tag_repo = TagRepository(db)

    async def list_tags(self) -> list[tuple[Tag, int]]:
        """
        Все теги с количеством заметок.

        Returns:
            Список кортежей (тег, количество_заметок),
            по убыванию количества, затем по имени

        Пример:
            [(Tag('work'), 12), (Tag('idea'), 3), (Tag('read'), 3), (Tag('old'), 0)]

        Теги без заметок тоже попадают в список (с нулём).
        """
        return await self.tag_repo.get_with_memo_counts()

    async def get_unused_tags(self) -> list[Tag]:
        """Теги, которые больше не встречаются ни в одной заметке."""
        return await self.tag_repo.get_unused_tags()

    async def cleanup_unused_tags(self) -> int:
        """
        Удалить все теги без заметок.

        Returns:
            Количество удалённых тегов

        Никакой инвариант не требует хранить такие теги; если тег снова
        появится в тексте, синхронизатор создаст его заново.
        """
        unused = await self.get_unused_tags()
        deleted = await self.tag_repo.delete_by_ids([tag.id for tag in unused])
        await self.db.flush()

        logger.info("Unused tags removed", extra={"count": deleted, "tags": [t.name for t in unused]})
        return deleted
