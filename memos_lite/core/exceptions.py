"""
Доменные исключения сервисного слоя.

Сервисы ничего не знают про HTTP: они бросают эти исключения,
а api/errors.py переводит их в единый формат ErrorResponse.

Таксономия:
- ValidationError       — некорректный ввод (400), повторять бессмысленно
- NotFoundError         — сущности нет
- AccessDeniedError     — сущность есть, но зрителю недоступна
                          (на границе неотличима от NotFoundError)
- ConflictError         — гонка уникальности; поглощается внутри, наружу не выходит
- StoreUnavailableError — сбой хранилища (503), клиент может повторить с backoff
"""


class MemoServiceError(Exception):
    """Base class for all domain errors."""


class ValidationError(MemoServiceError, ValueError):
    """Malformed input: bad id, empty content, unknown enum value."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(MemoServiceError):
    """Entity does not exist."""

    def __init__(self, resource: str, resource_id: int | str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id {resource_id} not found")


class AccessDeniedError(MemoServiceError):
    """Entity exists but the viewer may not see or modify it."""

    def __init__(self, resource: str, resource_id: int | str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"Access to {resource} with id {resource_id} denied")


class ConflictError(MemoServiceError):
    """Concurrent insert hit a unique constraint (e.g. two first uses of one tag)."""


class StoreUnavailableError(MemoServiceError):
    """Transport or store failure; the whole unit of work was not applied."""
