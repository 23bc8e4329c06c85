"""
Правила доступа к заметкам и общие помощники валидации.

Здесь нет обращений к БД: только чистые функции, которые решают,
кто что видит. MemoService превращает их результат в MemoQuery.
"""

import enum
import re
from dataclasses import dataclass, field

from ..core.config import settings
from ..core.exceptions import ValidationError
from ..models import Memo, MemoState, UserRole, Visibility
from ..repositories import MemoQuery

# ============================================================================
# VIEWER
# ============================================================================


@dataclass(frozen=True)
class Anonymous:
    """Зритель без идентификации."""

    @property
    def user_id(self) -> None:
        return None

    @property
    def is_admin(self) -> bool:
        return False


@dataclass(frozen=True)
class Authenticated:
    """Зритель, личность которого подтвердил провайдер идентичности."""

    user_id: int
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


Viewer = Anonymous | Authenticated

ANONYMOUS = Anonymous()


# ============================================================================
# FILTERS
# ============================================================================


class VisibilityFilter(str, enum.Enum):
    """Фильтр видимости в запросе списка."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    ALL = "ALL"


class StateFilter(str, enum.Enum):
    """Фильтр состояния: список и архив по умолчанию не пересекаются."""

    NORMAL = "NORMAL"
    ARCHIVED = "ARCHIVED"
    ALL = "ALL"


def clamp_limit(limit: int | None) -> int:
    """
    Прижать limit к диапазону 1..MAX_PAGE_LIMIT.

    Примеры:
        clamp_limit(None) → 50
        clamp_limit(1000) → 100
        clamp_limit(0)    → 1
    """
    if limit is None:
        return settings.DEFAULT_PAGE_LIMIT
    return max(1, min(limit, settings.MAX_PAGE_LIMIT))


def clamp_offset(offset: int | None) -> int:
    """Отрицательный offset превращается в 0."""
    if offset is None:
        return 0
    return max(0, offset)


@dataclass
class MemoFilters:
    """
    Фильтры списка заметок.

    tags — пересечение: заметка должна содержать все перечисленные теги.
    limit/offset прижимаются к допустимому диапазону при создании.
    """

    visibility: VisibilityFilter | None = None
    tags: list[str] = field(default_factory=list)
    search: str | None = None
    state: StateFilter = StateFilter.NORMAL
    limit: int | None = None
    offset: int | None = None

    def __post_init__(self):
        self.limit = clamp_limit(self.limit)
        self.offset = clamp_offset(self.offset)
        self.tags = [tag.lstrip("#") for tag in self.tags if tag and tag.lstrip("#")]
        if self.search is not None and self.search == "":
            self.search = None


# ============================================================================
# VISIBILITY RESOLUTION
# ============================================================================


def can_view(viewer: Viewer, memo: Memo) -> bool:
    """Заметку видно, если она публичная или зритель — её владелец."""
    return memo.visibility == Visibility.PUBLIC or (
        viewer.user_id is not None and viewer.user_id == memo.owner_id
    )


def resolve_scope(viewer: Viewer, visibility: VisibilityFilter | None) -> MemoQuery | None:
    """
    Превратить (зритель, фильтр видимости) в условия выборки.

    Returns:
        MemoQuery с условиями видимости или None, если допустимое
        множество заведомо пусто (аноним просит PRIVATE).

    Правила:
        Аноним                   → только PUBLIC (PRIVATE → пусто, не ошибка)
        Пользователь, без фильтра → свои (любые) OR чужие PUBLIC
        Пользователь, PUBLIC      → все PUBLIC
        Пользователь, PRIVATE     → только свои PRIVATE
    """
    if isinstance(viewer, Anonymous):
        if visibility == VisibilityFilter.PRIVATE:
            return None
        return MemoQuery(visibility=Visibility.PUBLIC)

    if visibility == VisibilityFilter.PUBLIC:
        return MemoQuery(visibility=Visibility.PUBLIC)

    if visibility == VisibilityFilter.PRIVATE:
        return MemoQuery(visibility=Visibility.PRIVATE, owner_id=viewer.user_id)

    return MemoQuery(own_or_public_for=viewer.user_id)


def state_condition(state: StateFilter) -> MemoState | None:
    """StateFilter → значение для WHERE state = ... (ALL → без условия)."""
    if state == StateFilter.ALL:
        return None
    return MemoState(state.value)


# ============================================================================
# INPUT VALIDATION
# ============================================================================

_SCRIPT_TAG = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)

# Наибольший ID, который помещается в BIGINT/SQLite INTEGER
MAX_ID = 2**63 - 1


def parse_memo_id(raw: int | str) -> int:
    """
    Проверить формат ID заметки.

    Допустимы положительные целые и строки из цифр ("42").

    Raises:
        ValidationError: "abc", "-1", "0", "4.2", True, больше MAX_ID
    """
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid memo id: {raw!r}", field="id")

    if isinstance(raw, int):
        memo_id = raw
    elif isinstance(raw, str) and raw.strip().isdecimal() and raw.strip().isascii():
        memo_id = int(raw.strip())
    else:
        raise ValidationError(f"Invalid memo id: {raw!r}", field="id")

    if not 0 < memo_id <= MAX_ID:
        raise ValidationError(f"Invalid memo id: {raw!r}", field="id")
    return memo_id


def sanitize_content(content: str | None) -> str:
    """
    Базовая очистка Markdown перед сохранением.

    - Вырезает блоки <script>...</script>
    - Убирает схему javascript:
    - Обрезает пробелы по краям

    Raises:
        ValidationError: если после очистки ничего не осталось
    """
    if content is None:
        raise ValidationError("Content is required", field="content")

    cleaned = _JS_SCHEME.sub("", _SCRIPT_TAG.sub("", content)).strip()
    if not cleaned:
        raise ValidationError("Content cannot be empty", field="content")
    return cleaned
