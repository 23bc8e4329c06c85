"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) — то, что уходит и приходит по HTTP.
Модели SQLAlchemy наружу не отдаются: схема решает, какие поля видит клиент.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models import MemoState, UserRole, Visibility

# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagResponse(BaseModel):
    """
    Тег в ответе.

    Используется внутри MemoResponse.
    """

    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagWithCount(TagResponse):
    """
    Тег с количеством заметок (GET /tags).

    Пример:
    {"id": 1, "name": "work", "created_at": "...", "memo_count": 12}
    """

    memo_count: int = Field(..., description="Количество заметок с этим тегом")


class TagCleanupResponse(BaseModel):
    """Результат уборки тегов без заметок."""

    deleted: int


# ============================================================================
# MEMO SCHEMAS
# ============================================================================


class MemoCreate(BaseModel):
    """
    Схема для создания заметки (POST /memos).

    Теги не передаются отдельно — они берутся из `#name` в content.

    Пример запроса:
    {
        "content": "buy milk #shopping #todo",
        "visibility": "PRIVATE",
        "pinned": false
    }
    """

    content: str = Field(..., min_length=1, description="Текст заметки (Markdown)")
    visibility: Visibility = Field(default=Visibility.PRIVATE, description="PUBLIC или PRIVATE")
    pinned: bool = Field(default=False, description="Закрепить вверху списка")


class MemoUpdate(BaseModel):
    """
    Схема для обновления заметки (PUT /memos/{id}).

    Все поля опциональные. Теги пересчитываются, только если передан content.

    Пример запроса (архивировать):
    {"state": "ARCHIVED"}
    """

    content: str | None = Field(None, min_length=1)
    visibility: Visibility | None = None
    pinned: bool | None = None
    state: MemoState | None = None


class MemoResponse(BaseModel):
    """
    Заметка в ответе API.

    Пример:
    {
        "id": 1,
        "owner_id": 7,
        "content": "buy milk #shopping #todo",
        "visibility": "PRIVATE",
        "pinned": false,
        "state": "NORMAL",
        "tags": [{"id": 1, "name": "shopping", ...}, {"id": 2, "name": "todo", ...}],
        "created_at": "2026-10-19T12:00:00",
        "updated_at": "2026-10-19T12:00:00"
    }
    """

    id: int
    owner_id: int
    content: str
    visibility: Visibility
    pinned: bool
    state: MemoState
    created_at: datetime
    updated_at: datetime

    tags: list[TagResponse] = []

    model_config = ConfigDict(from_attributes=True)


class MemoPageResponse(BaseModel):
    """
    Страница списка заметок.

    limit/offset — значения после прижатия к допустимому диапазону.
    """

    items: list[MemoResponse]
    total: int
    limit: int
    offset: int


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class CommentCreate(BaseModel):
    """
    Схема для создания комментария (POST /memos/{memo_id}/comments).

    Пример:
    {"content": "Отличная идея!"}
    """

    content: str = Field(..., min_length=1, description="Содержимое комментария (Markdown)")


class CommentResponse(BaseModel):
    """Комментарий с именем автора."""

    id: int
    memo_id: int
    user_id: int
    username: str
    content: str
    created_at: datetime

    @classmethod
    def from_comment(cls, comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            memo_id=comment.memo_id,
            user_id=comment.user_id,
            username=comment.author.username,
            content=comment.content,
            created_at=comment.created_at,
        )


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserResponse(BaseModel):
    """Пользователь (GET /users/me, GET /users)."""

    id: int
    username: str
    role: UserRole
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserStatsResponse(BaseModel):
    """Статистика пользователя (GET /users/{id}/stats)."""

    user_id: int
    total_memos: int
    total_tags: int
    total_comments: int
    first_memo_at: datetime | None = None
    last_memo_at: datetime | None = None


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {"field": "content", "message": "Content cannot be empty"}
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Коды:
    - VALIDATION_ERROR: ошибка валидации
    - NOT_FOUND: ресурса нет или он недоступен зрителю
    - UNAUTHORIZED / FORBIDDEN: нет личности или прав
    - STORE_UNAVAILABLE: сбой БД, можно повторить позже
    """

    code: str = Field(..., description="Код ошибки (VALIDATION_ERROR, NOT_FOUND, etc.)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Memo с id=999 не найден",
            "details": null
        }
    }
    """

    error: ErrorBody
