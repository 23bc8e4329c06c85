"""
Обработчики ошибок (Exception Handlers) для API.

Сервисы бросают доменные исключения (core/exceptions.py),
здесь они превращаются в единый ErrorResponse:

    ValidationError        → 400 VALIDATION_ERROR
    NotFoundError          → 404 NOT_FOUND
    AccessDeniedError      → 404 NOT_FOUND (тот же ответ, что и NotFoundError!)
    StoreUnavailableError  → 503 STORE_UNAVAILABLE
    SQLAlchemyError        → 503 STORE_UNAVAILABLE (сбой чтения или commit)
    RequestValidationError → 422 VALIDATION_ERROR

AccessDeniedError намеренно неотличим от NotFoundError: по ответу
нельзя понять, существует ли чужая приватная заметка с этим id.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import (
    AccessDeniedError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from ..core.logging import get_logger
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = get_logger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS (ошибки уровня HTTP)
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для ошибок, которые API бросает само (не сервисы).

    Использование:
        raise APIError(code="FORBIDDEN", message="Нужны права администратора", status_code=403)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class UnauthorizedError(APIError):
    """Нет подтверждённой личности (401)."""

    def __init__(self, message: str = "Требуется авторизация"):
        super().__init__(
            code="UNAUTHORIZED", message=message, status_code=status.HTTP_401_UNAUTHORIZED
        )


class ForbiddenError(APIError):
    """Личность есть, прав нет (403). Не используется для заметок."""

    def __init__(self, message: str = "Недостаточно прав"):
        super().__init__(code="FORBIDDEN", message=message, status_code=status.HTTP_403_FORBIDDEN)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


def _error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def not_found_message(resource: str, resource_id: int | str) -> str:
    return f"{resource} с id={resource_id} не найден"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Наши HTTP ошибки (APIError)."""
    logger.warning(f"API Error: {exc.code} - {exc.message}")

    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]

    return _error_response(exc.status_code, exc.code, exc.message, details)


async def domain_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Ошибка валидации бизнес-правил (400)."""
    logger.warning(f"Validation Error: {exc}")

    details = [ErrorDetail(field=exc.field, message=str(exc))] if exc.field else None
    return _error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", str(exc), details)


async def not_found_handler(
    request: Request, exc: NotFoundError | AccessDeniedError
) -> JSONResponse:
    """
    NotFoundError и AccessDeniedError → один и тот же 404.

    Причину пишем только в лог сервера, не в ответ.
    """
    logger.info(
        "Resource hidden from viewer",
        extra={
            "resource": exc.resource,
            "resource_id": exc.resource_id,
            "reason": type(exc).__name__,
        },
    )
    return _error_response(
        status.HTTP_404_NOT_FOUND,
        "NOT_FOUND",
        not_found_message(exc.resource, exc.resource_id),
    )


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Сбой БД (503): клиент может повторить запрос с backoff."""
    logger.error(f"Store unavailable: {exc}")

    return _store_unavailable_response()


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Сбой БД вне единицы работы сервиса (чтение, commit) → тот же 503.

    Сессию к этому моменту уже откатил get_db.
    """
    logger.error(
        "Database error",
        extra={"path": request.url.path, "error": type(exc).__name__},
        exc_info=exc,
    )
    return _store_unavailable_response()


def _store_unavailable_response() -> JSONResponse:
    response = _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "STORE_UNAVAILABLE",
        "Хранилище временно недоступно, повторите запрос позже",
    )
    response.headers["Retry-After"] = "1"
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Ошибки валидации Pydantic (422) в нашем формате.

    loc вида ["body", "content"] превращается в field="content".
    """
    logger.warning(f"Request Validation Error: {exc.errors()}")

    details = []
    for error in exc.errors():
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Ошибка валидации"))
        )

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Ошибка валидации входных данных",
        details,
    )


# =============================================================================
# РЕГИСТРАЦИЯ HANDLERS
# =============================================================================


def register_error_handlers(app: FastAPI) -> None:
    """Зарегистрировать все обработчики (вызывается из main.py)."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(ValidationError, domain_validation_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(AccessDeniedError, not_found_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Error handlers registered")
