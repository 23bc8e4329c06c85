"""
Тесты для Repository Layer.

Проверяем CRUD и специфичные запросы:
- Идемпотентный upsert тегов и связей
- Регистрозависимый поиск подстроки
- Сортировку (pinned, затем новые)
- Каскадное удаление
"""

from datetime import datetime, timedelta

import pytest

from memos_lite.models import Comment, Memo, MemoState, Visibility
from memos_lite.repositories import (
    CommentRepository,
    MemoQuery,
    MemoRepository,
    TagRepository,
    UserRepository,
)

# ============================================================================
# TAG REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_upsert_names_is_idempotent(test_db):
    """Test: повторный upsert не создаёт дубликатов."""
    repo = TagRepository(test_db)

    first = await repo.upsert_names(["idea", "work"])
    second = await repo.upsert_names(["work", "idea", "idea"])

    assert [t.name for t in first] == ["idea", "work"]
    assert [t.name for t in second] == ["work", "idea"]
    assert {t.id for t in first} == {t.id for t in second}
    assert await repo.count() == 2


@pytest.mark.asyncio
async def test_upsert_names_case_sensitive(test_db):
    """Test: Work и work — два разных тега."""
    repo = TagRepository(test_db)

    tags = await repo.upsert_names(["Work", "work"])

    assert len({t.id for t in tags}) == 2


@pytest.mark.asyncio
async def test_upsert_names_empty(test_db):
    """Test: пустой список — ничего не делаем."""
    assert await TagRepository(test_db).upsert_names([]) == []


@pytest.mark.asyncio
async def test_tags_with_memo_counts_ordering(test_db, alice):
    """Test: по убыванию количества заметок, при равенстве — по имени."""
    tag_repo = TagRepository(test_db)
    memo_repo = MemoRepository(test_db)

    zeta, alpha, beta, unused = await tag_repo.upsert_names(["zeta", "alpha", "beta", "unused"])
    for tag_ids in ([zeta.id, beta.id], [zeta.id, alpha.id], [zeta.id]):
        memo = await memo_repo.create(Memo(owner_id=alice.user_id, content="x"))
        await memo_repo.add_tags(memo.id, tag_ids)

    rows = await tag_repo.get_with_memo_counts()

    assert [(tag.name, count) for tag, count in rows] == [
        ("zeta", 3),
        ("alpha", 1),
        ("beta", 1),
        ("unused", 0),
    ]


@pytest.mark.asyncio
async def test_unused_tags_and_delete(test_db, alice):
    """Test: поиск и удаление тегов без заметок."""
    tag_repo = TagRepository(test_db)
    memo_repo = MemoRepository(test_db)

    used, orphan = await tag_repo.upsert_names(["used", "orphan"])
    memo = await memo_repo.create(Memo(owner_id=alice.user_id, content="#used"))
    await memo_repo.add_tags(memo.id, [used.id])

    unused = await tag_repo.get_unused_tags()
    assert [t.name for t in unused] == ["orphan"]

    assert await tag_repo.delete_by_ids([t.id for t in unused]) == 1
    assert await tag_repo.delete_by_ids([]) == 0
    assert await tag_repo.get_by_name("orphan") is None


# ============================================================================
# MEMO REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_add_tags_is_idempotent(test_db, alice):
    """Test: повторная связь (memo, tag) не создаёт дубликат."""
    memo_repo = MemoRepository(test_db)
    (tag,) = await TagRepository(test_db).upsert_names(["once"])
    memo = await memo_repo.create(Memo(owner_id=alice.user_id, content="#once"))

    await memo_repo.add_tags(memo.id, [tag.id, tag.id])
    await memo_repo.add_tags(memo.id, [tag.id])

    assert await memo_repo.get_tag_names(memo.id) == {"once"}
    assert await memo_repo.clear_tags(memo.id) == 1


@pytest.mark.asyncio
async def test_contains_is_case_sensitive(test_db, alice):
    """Test: поиск подстроки учитывает регистр (LIKE в SQLite — нет)."""
    repo = MemoRepository(test_db)
    upper = await repo.create(Memo(owner_id=alice.user_id, content="Meeting #Work"))
    lower = await repo.create(Memo(owner_id=alice.user_id, content="meeting #work"))

    found = await repo.get_matching(MemoQuery(owner_id=alice.user_id, contains=["#Work"]))

    assert [m.id for m in found] == [upper.id]
    assert lower.id not in [m.id for m in found]


@pytest.mark.asyncio
async def test_contains_treats_wildcards_literally(test_db, alice):
    """Test: % и _ в поиске — обычные символы."""
    repo = MemoRepository(test_db)
    await repo.create(Memo(owner_id=alice.user_id, content="100% done"))
    await repo.create(Memo(owner_id=alice.user_id, content="100 done"))

    found = await repo.get_matching(MemoQuery(owner_id=alice.user_id, contains=["100%"]))

    assert [m.content for m in found] == ["100% done"]


@pytest.mark.asyncio
async def test_get_matching_ordering(test_db, alice):
    """Test: закреплённые сверху, внутри группы — новые первыми."""
    repo = MemoRepository(test_db)
    base = datetime(2026, 1, 1, 12, 0)

    old_pinned = await repo.create(
        Memo(owner_id=alice.user_id, content="old pinned", pinned=True, created_at=base)
    )
    newest = await repo.create(
        Memo(owner_id=alice.user_id, content="newest", created_at=base + timedelta(days=2))
    )
    middle = await repo.create(
        Memo(owner_id=alice.user_id, content="middle", created_at=base + timedelta(days=1))
    )

    found = await repo.get_matching(MemoQuery(owner_id=alice.user_id))

    assert [m.id for m in found] == [old_pinned.id, newest.id, middle.id]


@pytest.mark.asyncio
async def test_get_matching_pagination_and_count(test_db, alice):
    """Test: skip/limit и count_matching по тем же условиям."""
    repo = MemoRepository(test_db)
    for i in range(5):
        await repo.create(Memo(owner_id=alice.user_id, content=f"memo {i}"))

    query = MemoQuery(owner_id=alice.user_id)
    page = await repo.get_matching(query, skip=2, limit=2)

    assert len(page) == 2
    assert await repo.count_matching(query) == 5


@pytest.mark.asyncio
async def test_own_or_public_condition(test_db, alice, bob):
    """Test: свои любые + чужие публичные."""
    repo = MemoRepository(test_db)
    own_private = await repo.create(Memo(owner_id=alice.user_id, content="a"))
    foreign_public = await repo.create(
        Memo(owner_id=bob.user_id, content="b", visibility=Visibility.PUBLIC)
    )
    await repo.create(Memo(owner_id=bob.user_id, content="c"))

    found = await repo.get_matching(MemoQuery(own_or_public_for=alice.user_id))

    assert {m.id for m in found} == {own_private.id, foreign_public.id}


@pytest.mark.asyncio
async def test_state_condition(test_db, alice):
    """Test: state=None снимает фильтр по состоянию."""
    repo = MemoRepository(test_db)
    await repo.create(Memo(owner_id=alice.user_id, content="live"))
    await repo.create(Memo(owner_id=alice.user_id, content="old", state=MemoState.ARCHIVED))

    assert await repo.count_matching(MemoQuery(owner_id=alice.user_id)) == 1
    assert await repo.count_matching(MemoQuery(owner_id=alice.user_id, state=None)) == 2


@pytest.mark.asyncio
async def test_delete_memo_cascades(test_db, alice):
    """Test: удаление заметки удаляет её связи и комментарии, но не теги."""
    memo_repo = MemoRepository(test_db)
    comment_repo = CommentRepository(test_db)
    tag_repo = TagRepository(test_db)

    (tag,) = await tag_repo.upsert_names(["gone"])
    memo = await memo_repo.create(Memo(owner_id=alice.user_id, content="#gone"))
    await memo_repo.add_tags(memo.id, [tag.id])
    await comment_repo.create(Comment(memo_id=memo.id, user_id=alice.user_id, content="hi"))

    assert await memo_repo.delete(memo.id) is True
    assert await memo_repo.delete(memo.id) is False

    assert await memo_repo.get_tag_names(memo.id) == set()
    assert await comment_repo.get_by_memo(memo.id) == []
    assert await tag_repo.get_by_name("gone") is not None


@pytest.mark.asyncio
async def test_owner_summary_and_distinct_tags(test_db, alice):
    """Test: статистика владельца."""
    memo_repo = MemoRepository(test_db)
    tag_repo = TagRepository(test_db)
    first_at = datetime(2026, 3, 1, 9, 0)
    last_at = datetime(2026, 3, 5, 18, 30)

    a, b = await tag_repo.upsert_names(["a", "b"])
    m1 = await memo_repo.create(Memo(owner_id=alice.user_id, content="#a", created_at=first_at))
    m2 = await memo_repo.create(Memo(owner_id=alice.user_id, content="#a #b", created_at=last_at))
    await memo_repo.add_tags(m1.id, [a.id])
    await memo_repo.add_tags(m2.id, [a.id, b.id])

    assert await memo_repo.get_owner_summary(alice.user_id) == (2, first_at, last_at)
    assert await memo_repo.count_distinct_tags(alice.user_id) == 2
    assert await memo_repo.get_created_dates(alice.user_id) == [first_at, last_at]


# ============================================================================
# USER REPOSITORY
# ============================================================================


@pytest.mark.asyncio
async def test_get_user_by_username(test_db, alice):
    """Test: поиск пользователя по имени."""
    repo = UserRepository(test_db)

    user = await repo.get_by_username("alice")

    assert user is not None
    assert user.id == alice.user_id
    assert await repo.get_by_username("nobody") is None
