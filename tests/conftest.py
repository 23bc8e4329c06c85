"""
Pytest fixtures для тестов.

Предоставляет:
- test_db: изолированная SQLite in-memory БД для каждого теста
- test_client: HTTP клиент для тестирования API endpoints
- alice / bob / admin: пользователи и их зрители (Authenticated)
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memos_lite.api.dependencies import get_db  # ВАЖНО: get_db из dependencies, не из database!
from memos_lite.core.config import settings
from memos_lite.core.database import build_engine
from memos_lite.main import app
from memos_lite.models import Base, UserRole
from memos_lite.services import Authenticated, UserService

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Async engine для тестовой БД (SQLite in-memory).

    build_engine даёт StaticPool (одно соединение на всю in-memory БД)
    и включает PRAGMA foreign_keys, без которой не работает ON DELETE CASCADE.

    Таблицы пересоздаются для каждого теста.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(session_factory):
    """
    Async session для работы с тестовой БД.

    Каждый тест получает чистую БД; изменения откатываются после теста.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _create_user(session_factory, username: str, role: UserRole = UserRole.USER):
    async with session_factory() as session:
        user = await UserService(session).create_user(username, "hashed-password", role=role)
        await session.commit()
        return Authenticated(user_id=user.id, role=user.role)


@pytest_asyncio.fixture
async def alice(session_factory) -> Authenticated:
    return await _create_user(session_factory, "alice")


@pytest_asyncio.fixture
async def bob(session_factory) -> Authenticated:
    return await _create_user(session_factory, "bob")


@pytest_asyncio.fixture
async def admin(session_factory) -> Authenticated:
    return await _create_user(session_factory, "root", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTP клиент для тестирования API endpoints.

    Использует тестовую БД вместо production БД и по умолчанию
    передаёт корректный X-API-Key.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()


# Pytest configuration
@pytest.fixture(scope="session")
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
