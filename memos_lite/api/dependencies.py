"""
Dependencies для FastAPI endpoints.

Цепочка для типичного запроса:

    verify_api_key          — клиентское приложение знает X-API-Key
    get_db                  — одна сессия (= одна транзакция) на запрос
    get_viewer              — кто смотрит: Anonymous или Authenticated
    get_memo_service и т.д. — сервис на этой же сессии

FastAPI кэширует зависимости в пределах запроса, поэтому get_viewer
и сервисы получают одну и ту же сессию.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import AsyncSessionLocal
from ..core.exceptions import StoreUnavailableError
from ..core.logging import viewer_id_var
from ..services import (
    ANONYMOUS,
    MAX_ID,
    Authenticated,
    CommentService,
    MemoService,
    TagService,
    UserService,
    Viewer,
)
from .errors import ForbiddenError, UnauthorizedError

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Не выбрасывать ошибку автоматически, мы сами обработаем
    description="Ключ клиентского приложения. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str | None = Depends(api_key_header)) -> str:
    """
    Проверка ключа клиентского приложения.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/memos
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Сессия БД на время запроса.

    commit() при успехе, rollback() при любой ошибке: заметка и её теги
    сохраняются вместе или не сохраняются вовсе. Сбой SQLAlchemy (чтение
    или сам commit) превращается в StoreUnavailableError.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise StoreUnavailableError("Transaction aborted: store unavailable") from e
        except Exception:
            await session.rollback()
            raise


# ============================================================================
# VIEWER (IDENTITY) DEPENDENCIES
# ============================================================================


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency для UserService."""
    return UserService(db)


async def get_viewer(
    x_user_id: str | None = Header(
        None,
        alias="X-User-Id",
        description="ID пользователя, подтверждённый провайдером идентичности",
    ),
    service: UserService = Depends(get_user_service),
) -> Viewer:
    """
    Определить зрителя запроса.

    Токен проверяет внешний провайдер идентичности (шлюз) и передаёт
    сюда уже готовый ID пользователя в X-User-Id.

    - Заголовка нет           → Anonymous
    - ID некорректный/чужой   → 401
    - Пользователь найден     → Authenticated(user_id, role)
    """
    if x_user_id is None or not x_user_id.strip():
        return ANONYMOUS

    raw_id = x_user_id.strip()
    if not (raw_id.isascii() and raw_id.isdecimal()) or int(raw_id) > MAX_ID:
        raise UnauthorizedError("Недействительная или просроченная учётная запись")

    viewer = await service.resolve_viewer(int(raw_id))
    if viewer is None:
        raise UnauthorizedError("Недействительная или просроченная учётная запись")

    viewer_id_var.set(str(viewer.user_id))
    return viewer


async def require_user(viewer: Viewer = Depends(get_viewer)) -> Authenticated:
    """Только для авторизованных (создание и правка заметок)."""
    if not isinstance(viewer, Authenticated):
        raise UnauthorizedError()
    return viewer


async def require_admin(viewer: Authenticated = Depends(require_user)) -> Authenticated:
    """Только для администраторов (уборка тегов)."""
    if not viewer.is_admin:
        raise ForbiddenError("Нужны права администратора")
    return viewer


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_memo_service(db: AsyncSession = Depends(get_db)) -> MemoService:
    """Dependency для MemoService."""
    return MemoService(db)


async def get_tag_service(db: AsyncSession = Depends(get_db)) -> TagService:
    """Dependency для TagService."""
    return TagService(db)


async def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    """Dependency для CommentService."""
    return CommentService(db)
