#!/usr/bin/env python3
"""
Seed script: demo users, memos with tags and a couple of comments.

Работает напрямую через сервисы (регистрации по HTTP нет):

    DATABASE_URL=sqlite+aiosqlite:///./memos.db python scripts/seed_data.py
"""

import asyncio

from memos_lite.core.database import AsyncSessionLocal, init_db
from memos_lite.models import MemoState, UserRole, Visibility
from memos_lite.services import Authenticated, CommentService, MemoService, UserService

USERS = [
    {"username": "admin", "role": UserRole.ADMIN},
    {"username": "alice", "role": UserRole.USER},
    {"username": "bob", "role": UserRole.USER},
]

# Теги берутся из текста, отдельно их задавать не нужно
MEMOS = {
    "alice": [
        {"content": "buy milk #shopping #todo"},
        {"content": "Прочитать «Designing Data-Intensive Applications» #read #work"},
        {"content": "Идея для пет-проекта: календарь заметок #idea", "visibility": Visibility.PUBLIC},
        {"content": "Созвон по релизу в пятницу #work #urgent", "pinned": True},
        {"content": "Старый план отпуска #travel", "state": MemoState.ARCHIVED},
    ],
    "bob": [
        {"content": "Hello world! #intro", "visibility": Visibility.PUBLIC},
        {"content": "读书笔记: 第一章 #读书", "visibility": Visibility.PUBLIC},
        {"content": "Личное: пароль от роутера не здесь #private"},
    ],
}

COMMENTS = [
    ("bob", "alice", 0, "Отличная идея!"),
    ("alice", "bob", 0, "Привет, Боб"),
]


async def main():
    print("=" * 60)
    print("Seeding database with demo memos")
    print("=" * 60)

    await init_db()

    async with AsyncSessionLocal() as session:
        users = UserService(session)
        memo_service = MemoService(session)

        print("\n👤 Creating users...")
        viewers = {}
        for user_data in USERS:
            user = await users.create_user(
                user_data["username"], password_hash="seed-not-a-real-hash", role=user_data["role"]
            )
            viewers[user.username] = Authenticated(user_id=user.id, role=user.role)
            print(f"  ✅ {user.username} (id={user.id}, {user.role.value})")

        print("\n📝 Creating memos...")
        public_memos = {}
        total_memos = 0
        for username, memos in MEMOS.items():
            for memo_data in memos:
                memo = await memo_service.create_memo(viewers[username], **memo_data)
                total_memos += 1
                if memo.visibility == Visibility.PUBLIC:
                    public_memos.setdefault(username, []).append(memo)
                tags = ", ".join(t.name for t in memo.tags) or "no tags"
                print(f"  ✅ {username}: {memo.content[:40]}... ({tags})")

        print("\n💬 Creating comments...")
        comment_service = CommentService(session)
        for author, memo_owner, index, content in COMMENTS:
            memo = public_memos[memo_owner][index]
            await comment_service.add_comment(viewers[author], memo.id, content)
            print(f"  ✅ {author} → memo {memo.id}: {content}")

        await session.commit()

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {len(USERS)} users and {total_memos} memos")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
