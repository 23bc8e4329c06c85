"""
Тесты для API Layer (REST endpoints).

Проверяем:
- HTTP статус-коды
- Форматы запросов/ответов (JSON)
- Обработку ошибок (400, 401, 403, 404, 422)
- Интеграцию всех слоёв (API → Service → Repository → DB)
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from memos_lite.repositories import MemoRepository
from memos_lite.services import Authenticated, TagSynchronizer

API = "/api/v1"


def as_user(viewer: Authenticated) -> dict[str, str]:
    """Заголовок от шлюза: запрос от имени пользователя."""
    return {"X-User-Id": str(viewer.user_id)}


async def create_memo(client: AsyncClient, viewer: Authenticated, content: str, **fields) -> dict:
    response = await client.post(
        f"{API}/memos", json={"content": content, **fields}, headers=as_user(viewer)
    )
    assert response.status_code == 201, response.json()
    return response.json()


# ============================================================================
# AUTHENTICATION
# ============================================================================


@pytest.mark.asyncio
async def test_missing_api_key(test_client: AsyncClient):
    """Test: без X-API-Key — 401."""
    response = await test_client.get(f"{API}/memos", headers={"X-API-Key": ""})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_api_key(test_client: AsyncClient):
    response = await test_client.get(f"{API}/memos", headers={"X-API-Key": "wrong"})

    assert response.status_code == 401


@pytest.mark.parametrize("user_id", ["abc", "99999", "99999999999999999999999"])
@pytest.mark.asyncio
async def test_unknown_user_id_is_unauthorized(test_client: AsyncClient, user_id):
    """Test: X-User-Id, которого нет в БД, — 401 UNAUTHORIZED."""
    response = await test_client.get(f"{API}/memos", headers={"X-User-Id": user_id})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_anonymous_cannot_create(test_client: AsyncClient):
    response = await test_client.post(f"{API}/memos", json={"content": "hi"})

    assert response.status_code == 401


# ============================================================================
# MEMO API TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_memo(test_client: AsyncClient, alice):
    """Test: POST /memos — теги из текста, PRIVATE по умолчанию."""
    data = await create_memo(test_client, alice, "buy milk #shopping #todo")

    assert data["owner_id"] == alice.user_id
    assert data["visibility"] == "PRIVATE"
    assert data["state"] == "NORMAL"
    assert data["pinned"] is False
    assert sorted(t["name"] for t in data["tags"]) == ["shopping", "todo"]
    assert "id" in data
    assert "created_at" in data


@pytest.mark.asyncio
async def test_create_memo_validation_error(test_client: AsyncClient, alice):
    """Test: пустой content — 422 в едином формате ErrorResponse."""
    response = await test_client.post(
        f"{API}/memos", json={"content": ""}, headers=as_user(alice)
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "content" in [d["field"] for d in error["details"]]


@pytest.mark.asyncio
async def test_create_memo_only_script_is_rejected(test_client: AsyncClient, alice):
    """Test: после очистки пусто — 400 VALIDATION_ERROR."""
    response = await test_client.post(
        f"{API}/memos",
        json={"content": "<script>alert(1)</script>"},
        headers=as_user(alice),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_foreign_private_memo_looks_like_missing(test_client: AsyncClient, alice, bob):
    """Test: чужая приватная заметка и несуществующая дают одинаковый 404."""
    memo = await create_memo(test_client, alice, "secret")

    hidden = await test_client.get(f"{API}/memos/{memo['id']}", headers=as_user(bob))
    missing_id = memo["id"] + 1000
    missing = await test_client.get(f"{API}/memos/{missing_id}", headers=as_user(bob))

    assert hidden.status_code == missing.status_code == 404
    assert hidden.json()["error"]["code"] == missing.json()["error"]["code"] == "NOT_FOUND"
    assert hidden.json()["error"]["message"].replace(str(memo["id"]), "X") == missing.json()[
        "error"
    ]["message"].replace(str(missing_id), "X")


@pytest.mark.asyncio
async def test_get_memo_invalid_id(test_client: AsyncClient, alice):
    """Test: некорректный ID — 400, а не 404."""
    response = await test_client.get(f"{API}/memos/abc", headers=as_user(alice))

    assert response.status_code == 400
    assert response.json()["error"]["details"][0]["field"] == "id"


@pytest.mark.asyncio
async def test_get_memo_id_out_of_range(test_client: AsyncClient, alice):
    """Test: ID больше 64 бит — 400, а не ошибка драйвера."""
    response = await test_client.get(
        f"{API}/memos/99999999999999999999999", headers=as_user(alice)
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# ============================================================================
# STORE FAILURES
# ============================================================================


@pytest.mark.asyncio
async def test_failed_tag_sync_rolls_back_memo(test_client: AsyncClient, alice, monkeypatch):
    """Test: сбой записи тегов — 503, и заметка не сохранилась."""

    async def broken_sync(self, memo_id, content):
        raise OperationalError("INSERT INTO memo_tags", {}, Exception("disk I/O error"))

    monkeypatch.setattr(TagSynchronizer, "sync_created", broken_sync)

    response = await test_client.post(
        f"{API}/memos", json={"content": "lost #tag"}, headers=as_user(alice)
    )

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORE_UNAVAILABLE"
    assert response.headers["Retry-After"] == "1"

    listing = await test_client.get(f"{API}/memos", headers=as_user(alice))
    assert listing.json()["total"] == 0
    assert (await test_client.get(f"{API}/tags")).json() == []


@pytest.mark.asyncio
async def test_read_failure_is_store_unavailable(test_client: AsyncClient, alice, monkeypatch):
    """Test: сбой БД при чтении списка — 503 STORE_UNAVAILABLE с Retry-After."""

    async def broken_read(self, query, skip=0, limit=None):
        raise OperationalError("SELECT memos", {}, Exception("database is locked"))

    monkeypatch.setattr(MemoRepository, "get_matching", broken_read)

    response = await test_client.get(f"{API}/memos", headers=as_user(alice))

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORE_UNAVAILABLE"
    assert response.headers["Retry-After"] == "1"


@pytest.mark.asyncio
async def test_anonymous_listing(test_client: AsyncClient, alice):
    """Test: аноним видит только публичные заметки."""
    public = await create_memo(test_client, alice, "hello world", visibility="PUBLIC")
    await create_memo(test_client, alice, "secret")

    response = await test_client.get(f"{API}/memos")

    assert response.status_code == 200
    data = response.json()
    assert [m["id"] for m in data["items"]] == [public["id"]]
    assert data["total"] == 1

    private = await test_client.get(f"{API}/memos", params={"visibility": "PRIVATE"})
    assert private.status_code == 200
    assert private.json()["items"] == []


@pytest.mark.asyncio
async def test_list_clamps_pagination(test_client: AsyncClient, alice):
    """Test: limit=1000&offset=-5 → limit 100, offset 0."""
    response = await test_client.get(
        f"{API}/memos", params={"limit": 1000, "offset": -5}, headers=as_user(alice)
    )

    assert response.status_code == 200
    assert response.json()["limit"] == 100
    assert response.json()["offset"] == 0


@pytest.mark.asyncio
async def test_list_by_several_tags(test_client: AsyncClient, alice):
    """Test: ?tag=work&tag=urgent — пересечение тегов."""
    both = await create_memo(test_client, alice, "fix prod #work #urgent")
    await create_memo(test_client, alice, "standup #work")

    response = await test_client.get(
        f"{API}/memos", params=[("tag", "work"), ("tag", "urgent")], headers=as_user(alice)
    )

    assert [m["id"] for m in response.json()["items"]] == [both["id"]]


@pytest.mark.asyncio
async def test_update_memo(test_client: AsyncClient, alice):
    """Test: PUT /memos/{id} — правка текста пересобирает теги."""
    memo = await create_memo(test_client, alice, "plan #work")

    response = await test_client.put(
        f"{API}/memos/{memo['id']}",
        json={"content": "plan #life", "pinned": True},
        headers=as_user(alice),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "plan #life"
    assert data["pinned"] is True
    assert [t["name"] for t in data["tags"]] == ["life"]


@pytest.mark.asyncio
async def test_archive_memo(test_client: AsyncClient, alice):
    """Test: архивная заметка уходит из списка, но доступна по state=ARCHIVED."""
    memo = await create_memo(test_client, alice, "old #note")

    await test_client.put(
        f"{API}/memos/{memo['id']}", json={"state": "ARCHIVED"}, headers=as_user(alice)
    )

    default = await test_client.get(f"{API}/memos", headers=as_user(alice))
    archived = await test_client.get(
        f"{API}/memos", params={"state": "ARCHIVED"}, headers=as_user(alice)
    )
    assert default.json()["items"] == []
    assert [m["id"] for m in archived.json()["items"]] == [memo["id"]]


@pytest.mark.asyncio
async def test_update_foreign_memo_not_found(test_client: AsyncClient, alice, bob):
    memo = await create_memo(test_client, alice, "mine", visibility="PUBLIC")

    response = await test_client.put(
        f"{API}/memos/{memo['id']}", json={"content": "theirs"}, headers=as_user(bob)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_memo(test_client: AsyncClient, alice):
    """Test: DELETE /memos/{id} — 204, затем 404."""
    memo = await create_memo(test_client, alice, "bye")

    response = await test_client.delete(f"{API}/memos/{memo['id']}", headers=as_user(alice))
    assert response.status_code == 204

    response = await test_client.get(f"{API}/memos/{memo['id']}", headers=as_user(alice))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_memo_daily_stats(test_client: AsyncClient, alice):
    await create_memo(test_client, alice, "one")
    await create_memo(test_client, alice, "two")

    response = await test_client.get(f"{API}/memos/stats", headers=as_user(alice))

    assert response.status_code == 200
    assert sum(response.json().values()) == 2


# ============================================================================
# COMMENT API TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_comments(test_client: AsyncClient, alice, bob):
    memo = await create_memo(test_client, alice, "discuss", visibility="PUBLIC")

    response = await test_client.post(
        f"{API}/memos/{memo['id']}/comments", json={"content": "Отличная идея!"}, headers=as_user(bob)
    )
    assert response.status_code == 201
    assert response.json()["username"] == "bob"

    response = await test_client.get(f"{API}/memos/{memo['id']}/comments")
    assert response.status_code == 200
    assert [c["content"] for c in response.json()] == ["Отличная идея!"]


@pytest.mark.asyncio
async def test_comment_on_hidden_memo(test_client: AsyncClient, alice, bob):
    memo = await create_memo(test_client, alice, "private")

    response = await test_client.post(
        f"{API}/memos/{memo['id']}/comments", json={"content": "hi"}, headers=as_user(bob)
    )

    assert response.status_code == 404


# ============================================================================
# TAG API TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_get_tags(test_client: AsyncClient, alice):
    """Test: GET /tags — теги с количеством заметок."""
    await create_memo(test_client, alice, "#work #idea")
    await create_memo(test_client, alice, "#work")

    response = await test_client.get(f"{API}/tags")

    assert response.status_code == 200
    assert [(t["name"], t["memo_count"]) for t in response.json()] == [("work", 2), ("idea", 1)]


@pytest.mark.asyncio
async def test_cleanup_tags_requires_admin(test_client: AsyncClient, alice, admin):
    """Test: POST /tags/cleanup — 403 для обычного пользователя, уборка для админа."""
    memo = await create_memo(test_client, alice, "#stale")
    await test_client.put(
        f"{API}/memos/{memo['id']}", json={"content": "fresh #new"}, headers=as_user(alice)
    )

    forbidden = await test_client.post(f"{API}/tags/cleanup", headers=as_user(alice))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "FORBIDDEN"

    response = await test_client.post(f"{API}/tags/cleanup", headers=as_user(admin))
    assert response.status_code == 200
    assert response.json() == {"deleted": 1}

    tags = await test_client.get(f"{API}/tags")
    assert [t["name"] for t in tags.json()] == ["new"]


# ============================================================================
# USER API TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_get_me(test_client: AsyncClient, alice):
    response = await test_client.get(f"{API}/users/me", headers=as_user(alice))

    assert response.status_code == 200
    assert response.json()["username"] == "alice"
    assert response.json()["role"] == "USER"


@pytest.mark.asyncio
async def test_get_me_anonymous(test_client: AsyncClient):
    response = await test_client.get(f"{API}/users/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_stats(test_client: AsyncClient, alice):
    await create_memo(test_client, alice, "#a #b")

    response = await test_client.get(f"{API}/users/{alice.user_id}/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["total_memos"] == 1
    assert data["total_tags"] == 2
    assert data["total_comments"] == 0


@pytest.mark.asyncio
async def test_user_stats_not_found(test_client: AsyncClient):
    response = await test_client.get(f"{API}/users/99999/stats")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_user_stats_id_out_of_range(test_client: AsyncClient):
    response = await test_client.get(f"{API}/users/99999999999999999999999/stats")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_users_requires_admin(test_client: AsyncClient, alice, admin):
    """Test: GET /users — 403 для обычного пользователя, список для админа."""
    forbidden = await test_client.get(f"{API}/users", headers=as_user(alice))
    assert forbidden.status_code == 403

    response = await test_client.get(f"{API}/users", headers=as_user(admin))
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == ["alice", "root"]
    assert "password_hash" not in response.json()[0]


# ============================================================================
# ROOT
# ============================================================================


@pytest.mark.asyncio
async def test_root(test_client: AsyncClient):
    response = await test_client.get("/")

    assert response.status_code == 200
    assert response.json()["api_version"] == "v1"
    assert "X-Request-ID" in response.headers
