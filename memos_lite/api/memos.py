"""
API endpoints для работы с заметками.

- Список с фильтрами (видимость, теги, поиск, состояние) и пагинацией
- CRUD одной заметки
- Комментарии
- Статистика по дням

Чужая приватная заметка и несуществующая заметка дают один и тот же 404.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from ..services import (
    Authenticated,
    CommentService,
    MemoFilters,
    MemoService,
    StateFilter,
    Viewer,
    VisibilityFilter,
)
from .dependencies import get_comment_service, get_memo_service, get_viewer, require_user
from .schemas import (
    CommentCreate,
    CommentResponse,
    ErrorResponse,
    MemoCreate,
    MemoPageResponse,
    MemoResponse,
    MemoUpdate,
)

router = APIRouter(prefix="/memos", tags=["memos"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Заметка не найдена"}}


# ============================================================================
# LIST MEMOS
# ============================================================================


@router.get(
    "",
    response_model=MemoPageResponse,
    summary="Получить заметки с фильтрами",
    description="""
    Заметки, видимые текущему зрителю.

    **Видимость:**
    - аноним видит только PUBLIC
    - пользователь без фильтра видит свои заметки + чужие PUBLIC
    - visibility=PRIVATE — только свои приватные

    **Фильтры:** tag (можно несколько раз — пересечение), search, state.

    **Пагинация:** limit (1-100, по умолчанию 50), offset.
    Значения вне диапазона молча прижимаются к границам.

    Закреплённые заметки всегда вверху, дальше — новые первыми.
    """,
)
async def list_memos(
    visibility: VisibilityFilter | None = Query(None, description="PUBLIC, PRIVATE или ALL"),
    tag: list[str] = Query(default=[], description="Тег без #, можно повторять"),
    search: str | None = Query(None, description="Подстрока текста (с учётом регистра)"),
    state: StateFilter = Query(StateFilter.NORMAL, description="NORMAL, ARCHIVED или ALL"),
    limit: int | None = Query(None, description="Максимум записей (1-100)"),
    offset: int | None = Query(None, description="Пропустить N записей"),
    viewer: Viewer = Depends(get_viewer),
    service: MemoService = Depends(get_memo_service),
) -> MemoPageResponse:
    """
    Примеры запросов:
    ```
    GET /api/v1/memos                          # лента зрителя
    GET /api/v1/memos?tag=work&tag=urgent      # заметки с обоими тегами
    GET /api/v1/memos?state=ARCHIVED           # архив
    GET /api/v1/memos?search=milk&limit=10
    ```
    """
    page = await service.list_memos(
        viewer,
        MemoFilters(
            visibility=visibility,
            tags=tag,
            search=search,
            state=state,
            limit=limit,
            offset=offset,
        ),
    )
    return MemoPageResponse(
        items=[MemoResponse.model_validate(m) for m in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


# ============================================================================
# DAILY STATS
# ============================================================================


@router.get(
    "/stats",
    response_model=dict[str, int],
    summary="Количество заметок по дням",
    description="Для календаря активности: {\"YYYY-MM-DD\": количество} по своим заметкам.",
)
async def get_memo_stats(
    viewer: Authenticated = Depends(require_user),
    service: MemoService = Depends(get_memo_service),
) -> dict[str, int]:
    return await service.get_daily_counts(viewer)


# ============================================================================
# CREATE MEMO
# ============================================================================


@router.post(
    "",
    response_model=MemoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать заметку",
    description="Теги создаются автоматически из `#name` в тексте.",
    responses={400: {"model": ErrorResponse, "description": "Пустой текст"}},
)
async def create_memo(
    data: MemoCreate,
    viewer: Authenticated = Depends(require_user),
    service: MemoService = Depends(get_memo_service),
) -> MemoResponse:
    """
    Пример запроса:
    ```json
    {"content": "buy milk #shopping #todo", "visibility": "PRIVATE"}
    ```
    """
    memo = await service.create_memo(
        viewer,
        content=data.content,
        visibility=data.visibility,
        pinned=data.pinned,
    )
    return MemoResponse.model_validate(memo)


# ============================================================================
# GET / UPDATE / DELETE MEMO
# ============================================================================


@router.get(
    "/{memo_id}",
    response_model=MemoResponse,
    summary="Получить заметку по ID",
    responses=NOT_FOUND_RESPONSE,
)
async def get_memo(
    memo_id: str,
    viewer: Viewer = Depends(get_viewer),
    service: MemoService = Depends(get_memo_service),
) -> MemoResponse:
    memo = await service.get_memo(viewer, memo_id)
    return MemoResponse.model_validate(memo)


@router.put(
    "/{memo_id}",
    response_model=MemoResponse,
    summary="Обновить заметку",
    description="""
    Частичное обновление (только владелец).

    Теги пересчитываются, только если передан content.
    Архивировать: `{"state": "ARCHIVED"}`.
    """,
    responses=NOT_FOUND_RESPONSE,
)
async def update_memo(
    memo_id: str,
    data: MemoUpdate,
    viewer: Authenticated = Depends(require_user),
    service: MemoService = Depends(get_memo_service),
) -> MemoResponse:
    memo = await service.update_memo(viewer, memo_id, **data.model_dump(exclude_none=True))
    return MemoResponse.model_validate(memo)


@router.delete(
    "/{memo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить заметку",
    description="Удаление навсегда, вместе с тегами-связями и комментариями.",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_memo(
    memo_id: str,
    viewer: Authenticated = Depends(require_user),
    service: MemoService = Depends(get_memo_service),
) -> Response:
    await service.delete_memo(viewer, memo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# COMMENTS
# ============================================================================


@router.get(
    "/{memo_id}/comments",
    response_model=list[CommentResponse],
    summary="Комментарии к заметке",
    responses=NOT_FOUND_RESPONSE,
)
async def list_comments(
    memo_id: str,
    viewer: Viewer = Depends(get_viewer),
    service: CommentService = Depends(get_comment_service),
) -> list[CommentResponse]:
    comments = await service.list_comments(viewer, memo_id)
    return [CommentResponse.from_comment(c) for c in comments]


@router.post(
    "/{memo_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить комментарий",
    responses=NOT_FOUND_RESPONSE,
)
async def add_comment(
    memo_id: str,
    data: CommentCreate,
    viewer: Authenticated = Depends(require_user),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    comment = await service.add_comment(viewer, memo_id, data.content)
    return CommentResponse.from_comment(comment)
