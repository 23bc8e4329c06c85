"""API endpoints для пользователей: список, текущий пользователь и статистика."""

from fastapi import APIRouter, Depends, Path, Query

from ..services import MAX_ID, Authenticated, UserService
from .dependencies import get_user_service, require_admin, require_user
from .schemas import ErrorResponse, UserResponse, UserStatsResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=list[UserResponse],
    summary="Список пользователей",
    description="Только для администраторов. Пагинация как у заметок (limit 1-100, offset).",
    responses={403: {"model": ErrorResponse, "description": "Нужны права администратора"}},
)
async def list_users(
    limit: int | None = Query(None, description="Максимум записей (1-100)"),
    offset: int | None = Query(None, description="Пропустить N записей"),
    admin: Authenticated = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    users = await service.list_users(limit=limit, offset=offset)
    return [UserResponse.model_validate(u) for u in users]


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Текущий пользователь",
    responses={401: {"model": ErrorResponse, "description": "Требуется авторизация"}},
)
async def get_me(
    viewer: Authenticated = Depends(require_user),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.get_user(viewer.user_id)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}/stats",
    response_model=UserStatsResponse,
    summary="Статистика пользователя",
    description="Количество заметок, тегов и комментариев, даты первой и последней заметки.",
    responses={404: {"model": ErrorResponse, "description": "Пользователь не найден"}},
)
async def get_user_stats(
    user_id: int = Path(..., ge=1, le=MAX_ID, description="ID пользователя"),
    service: UserService = Depends(get_user_service),
) -> UserStatsResponse:
    """
    Пример запроса:
    ```
    GET /api/v1/users/7/stats
    ```
    """
    stats = await service.get_user_stats(user_id)
    return UserStatsResponse(**stats)
