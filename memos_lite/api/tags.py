"""
API endpoints для работы с тегами.

Теги не создаются руками: они появляются из `#name` в тексте заметок.
Здесь — список с количеством заметок и уборка тегов без заметок.
"""

from fastapi import APIRouter, Depends

from ..services import Authenticated, TagService
from .dependencies import get_tag_service, require_admin
from .schemas import ErrorResponse, TagCleanupResponse, TagWithCount

router = APIRouter(prefix="/tags", tags=["tags"])


# ============================================================================
# GET ALL TAGS
# ============================================================================


@router.get(
    "",
    response_model=list[TagWithCount],
    summary="Получить все теги",
    description="Все теги с количеством заметок: по убыванию количества, затем по имени.",
)
async def get_tags(service: TagService = Depends(get_tag_service)) -> list[TagWithCount]:
    """
    Пример ответа:
    ```json
    [
        {"id": 3, "name": "work", "created_at": "...", "memo_count": 12},
        {"id": 9, "name": "old", "created_at": "...", "memo_count": 0}
    ]
    ```
    """
    rows = await service.list_tags()
    return [
        TagWithCount(id=tag.id, name=tag.name, created_at=tag.created_at, memo_count=count)
        for tag, count in rows
    ]


# ============================================================================
# CLEANUP UNUSED TAGS
# ============================================================================


@router.post(
    "/cleanup",
    response_model=TagCleanupResponse,
    summary="Удалить теги без заметок",
    description="Только для администраторов.",
    responses={403: {"model": ErrorResponse, "description": "Нужны права администратора"}},
)
async def cleanup_tags(
    admin: Authenticated = Depends(require_admin),
    service: TagService = Depends(get_tag_service),
) -> TagCleanupResponse:
    deleted = await service.cleanup_unused_tags()
    return TagCleanupResponse(deleted=deleted)
