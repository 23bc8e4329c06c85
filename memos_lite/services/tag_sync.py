"""
Синхронизация тегов заметки с её текстом.

Теги никогда не вводятся отдельно: они выводятся из `#name` в content.
После любого создания или правки текста набор строк memo_tags заметки
в точности равен набору тегов, найденных в её тексте.
"""

import re

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, StoreUnavailableError
from ..core.logging import get_logger
from ..models import Tag
from ..repositories import MemoRepository, TagRepository

logger = get_logger(__name__)

# Символы имени тега: латиница, цифры, "_", "-" и иероглифы CJK
# (Unified + Extension A, Compatibility, Extensions B-F и G-H)
_TAG_CHARS = (
    r"A-Za-z0-9_\-"
    r"\u3400-\u4dbf"
    r"\u4e00-\u9fff"
    r"\uf900-\ufaff"
    r"\U00020000-\U0002ebef"
    r"\U00030000-\U000323af"
)

TAG_PATTERN = re.compile(rf"#([{_TAG_CHARS}]+)")

# Сколько раз повторить upsert после гонки уникальности
MAX_CONFLICT_RETRIES = 3


def extract_tags(content: str) -> list[str]:
    """
    Извлечь имена тегов из текста заметки.

    Args:
        content: Markdown текст

    Returns:
        Уникальные имена в порядке первого появления (без "#")

    Примеры:
        "buy milk #shopping #todo"   → ["shopping", "todo"]
        "#Work and #work and #Work"  → ["Work", "work"]
        "# Заголовок"                → []
        "#读书 笔记 #2024-plan"       → ["读书", "2024-plan"]
    """
    if not content:
        return []
    return list(dict.fromkeys(TAG_PATTERN.findall(content)))


class TagSynchronizer:
    """
    Приводит связи memo_tags в соответствие с текстом заметки.

    Работает внутри транзакции вызывающего: если запись связей падает,
    откатывается вся единица работы вместе с самой заметкой.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.memo_repo = MemoRepository(db)
        self.tag_repo = TagRepository(db)

    async def sync_created(self, memo_id: int, content: str) -> list[Tag]:
        """
        Связать новую заметку с тегами из её текста.

        1. Извлечь набор имён T
        2. Для каждого имени — upsert тега
        3. Для каждого тега — upsert связи (memo_id, tag_id)

        Удалять нечего: у новой заметки связей ещё нет.
        """
        names = extract_tags(content)
        tags = await self._ensure_tags(names)
        await self.memo_repo.add_tags(memo_id, [tag.id for tag in tags])

        logger.debug("Memo tags linked", extra={"memo_id": memo_id, "tags": names})
        return tags

    async def sync_updated(self, memo_id: int, content: str) -> list[Tag]:
        """
        Пересобрать связи после смены текста.

        Стратегия delete-then-reinsert: сначала удаляются все связи
        заметки, затем повторяется алгоритм создания. Устаревший тег
        не может остаться висеть после того, как его убрали из текста.
        """
        removed = await self.memo_repo.clear_tags(memo_id)
        tags = await self.sync_created(memo_id, content)

        logger.info(
            "Memo tags resynchronized",
            extra={"memo_id": memo_id, "removed": removed, "tags": [t.name for t in tags]},
        )
        return tags

    async def _ensure_tags(self, names: list[str]) -> list[Tag]:
        """Upsert тегов; гонка с параллельным запросом поглощается повтором."""
        for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
            try:
                return await self.tag_repo.upsert_names(names)
            except ConflictError:
                logger.warning(
                    "Tag upsert conflict, retrying",
                    extra={"tags": names, "attempt": attempt},
                )

        raise StoreUnavailableError(f"Could not create tags {names} after {MAX_CONFLICT_RETRIES} attempts")
