"""Memo service: access resolution, writes and tag synchronization."""

from collections import Counter
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import (
    AccessDeniedError,
    MemoServiceError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from ..core.logging import get_logger
from ..models import Memo, MemoState, Visibility
from ..repositories import MemoRepository
from .access import (
    Authenticated,
    MemoFilters,
    Viewer,
    can_view,
    parse_memo_id,
    resolve_scope,
    sanitize_content,
    state_condition,
)
from .tag_sync import TagSynchronizer

logger = get_logger(__name__)

# Поля, которые можно менять через update_memo
UPDATABLE_FIELDS = ("content", "visibility", "pinned", "state")


@dataclass
class MemoPage:
    """Страница списка заметок."""

    items: list[Memo]
    total: int
    limit: int
    offset: int


class MemoService:
    """
    Сервис для работы с заметками.

    Две обязанности:
    1. Доступ: какие заметки видит зритель и в каком порядке
    2. Запись: создание/правка заметки + синхронизация тегов
       одной единицей работы
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса."""
        self.db = db
        self.memo_repo = MemoRepository(db)
        self.synchronizer = TagSynchronizer(db)

    # ========================================================================
    # READ
    # ========================================================================

    async def list_memos(self, viewer: Viewer, filters: MemoFilters | None = None) -> MemoPage:
        """
        Список заметок, видимых зрителю.

        Args:
            viewer: Anonymous или Authenticated
            filters: видимость, теги, поиск, состояние, пагинация

        Returns:
            MemoPage: отсортировано pinned DESC, created_at DESC

        Результат зависит только от (снимок БД, зритель, фильтры).

        Несколько тегов: первый тег проверяется в БД, остальные —
        пост-фильтром по тексту над результатом первого; пагинация
        применяется уже после пост-фильтра.
        """
        filters = filters or MemoFilters()

        query = resolve_scope(viewer, filters.visibility)
        if query is None:
            return MemoPage(items=[], total=0, limit=filters.limit, offset=filters.offset)

        query.state = state_condition(filters.state)
        if filters.search:
            query.contains.append(filters.search)

        first_tag, *other_tags = filters.tags or [None]
        if first_tag:
            query.contains.append(f"#{first_tag}")

        if not other_tags:
            items = await self.memo_repo.get_matching(
                query, skip=filters.offset, limit=filters.limit
            )
            total = await self.memo_repo.count_matching(query)
            return MemoPage(items=items, total=total, limit=filters.limit, offset=filters.offset)

        candidates = await self.memo_repo.get_matching(query)
        matched = [
            memo for memo in candidates if all(f"#{tag}" in memo.content for tag in other_tags)
        ]
        page = matched[filters.offset : filters.offset + filters.limit]
        return MemoPage(items=page, total=len(matched), limit=filters.limit, offset=filters.offset)

    async def get_memo(self, viewer: Viewer, memo_id: int | str) -> Memo:
        """
        Получить одну заметку.

        Raises:
            ValidationError: некорректный формат ID
            NotFoundError: заметки нет
            AccessDeniedError: заметка есть, но зрителю не видна

        Архивные заметки владельцу видны.
        """
        memo_id = parse_memo_id(memo_id)

        memo = await self.memo_repo.get_by_id_full(memo_id)
        if not memo:
            raise NotFoundError("Memo", memo_id)

        if not can_view(viewer, memo):
            raise AccessDeniedError("Memo", memo_id)

        return memo

    async def get_daily_counts(self, owner: Authenticated) -> dict[str, int]:
        """
        Количество заметок владельца по дням.

        Пример:
            {"2026-10-01": 3, "2026-10-02": 1}
        """
        dates = await self.memo_repo.get_created_dates(owner.user_id)
        return dict(Counter(created.date().isoformat() for created in dates))

    # ========================================================================
    # WRITE
    # ========================================================================

    async def create_memo(
        self,
        owner: Authenticated,
        content: str,
        visibility: Visibility = Visibility.PRIVATE,
        pinned: bool = False,
        state: MemoState = MemoState.NORMAL,
    ) -> Memo:
        """
        Создать заметку и связать её с тегами из текста.

        Args:
            owner: Автор
            content: Markdown текст (обязателен)
            visibility: PRIVATE по умолчанию
            pinned: Закрепить сверху списка
            state: NORMAL по умолчанию

        Returns:
            Созданная заметка с тегами

        Raises:
            ValidationError: пустой текст
            StoreUnavailableError: сбой БД (ничего не записано)

        Пример:
            memo = await service.create_memo(owner, "buy milk #shopping #todo")
            [t.name for t in memo.tags]  # ["shopping", "todo"]
        """
        content = sanitize_content(content)

        async with self._unit_of_work("create_memo", owner_id=owner.user_id):
            memo = await self.memo_repo.create(
                Memo(
                    owner_id=owner.user_id,
                    content=content,
                    visibility=visibility,
                    pinned=pinned,
                    state=state,
                )
            )
            await self.synchronizer.sync_created(memo.id, memo.content)
            await self.db.flush()
            memo = await self.memo_repo.get_by_id_full(memo.id)

        logger.info(
            "Memo created",
            extra={"memo_id": memo.id, "owner_id": owner.user_id, "visibility": visibility.value},
        )
        return memo

    async def update_memo(self, owner: Authenticated, memo_id: int | str, **changes: Any) -> Memo:
        """
        Частично обновить заметку.

        Args:
            owner: Кто правит (должен быть владельцем)
            memo_id: ID заметки
            **changes: content, visibility, pinned, state (None = не менять)

        Raises:
            ValidationError: неизвестное поле, пустой текст, плохой ID
            NotFoundError / AccessDeniedError: заметки нет или она чужая

        Бизнес-правила:
        1. Теги пересобираются ТОЛЬКО если передан content
        2. Правка visibility/pinned/state связи не трогает
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown memo fields: {', '.join(sorted(unknown))}")

        updates = {key: value for key, value in changes.items() if value is not None}
        if "content" in updates:
            updates["content"] = sanitize_content(updates["content"])

        memo = await self._get_owned(owner, memo_id)
        if not updates:
            return memo

        async with self._unit_of_work("update_memo", memo_id=memo.id):
            memo = await self.memo_repo.update(memo, **updates)
            if "content" in updates:
                await self.synchronizer.sync_updated(memo.id, memo.content)
            await self.db.flush()
            memo = await self.memo_repo.get_by_id_full(memo.id)

        logger.info(
            "Memo updated",
            extra={"memo_id": memo.id, "fields": sorted(updates)},
        )
        return memo

    async def delete_memo(self, owner: Authenticated, memo_id: int | str) -> bool:
        """
        Удалить заметку навсегда.

        memo_tags и комментарии удаляются каскадом на стороне БД.
        Для "мягкого" удаления есть state=ARCHIVED.
        """
        memo = await self._get_owned(owner, memo_id)

        async with self._unit_of_work("delete_memo", memo_id=memo.id):
            deleted = await self.memo_repo.delete(memo.id)
            await self.db.flush()

        logger.info("Memo deleted", extra={"memo_id": memo.id})
        return deleted

    # Вспомогательные методы (private)

    async def _get_owned(self, owner: Authenticated, memo_id: int | str) -> Memo:
        """Заметка, которую owner имеет право менять (только свои)."""
        memo_id = parse_memo_id(memo_id)

        memo = await self.memo_repo.get_by_id_full(memo_id)
        if not memo:
            raise NotFoundError("Memo", memo_id)
        if memo.owner_id != owner.user_id:
            raise AccessDeniedError("Memo", memo_id)
        return memo

    def _unit_of_work(self, operation: str, **context: Any) -> "_StoreGuard":
        return _StoreGuard(operation, context)


class _StoreGuard:
    """
    Переводит сбои SQLAlchemy в StoreUnavailableError.

    Откат делает владелец сессии (get_db): запись заметки и её тегов
    либо применяется целиком, либо не применяется вовсе.
    """

    def __init__(self, operation: str, context: dict[str, Any]):
        self.operation = operation
        self.context = context

    async def __aenter__(self) -> "_StoreGuard":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None or isinstance(exc, MemoServiceError):
            return False

        if isinstance(exc, SQLAlchemyError):
            logger.error(
                "Store failure, unit of work aborted",
                extra={"operation": self.operation, **self.context},
                exc_info=(exc_type, exc, tb),
            )
            raise StoreUnavailableError(f"{self.operation} failed: store unavailable") from exc

        return False
