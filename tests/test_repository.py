import asyncio
from datetime import datetime, timedelta

from mongomock_motor import AsyncMongoMockClient

from app.infrastructure.database.repository import ChatRepository, TransactionRepository, UserRepository

NOW = datetime(2024, 7, 25, 12, 0, 0)


def _database():
    return AsyncMongoMockClient()["quickgpt_test"]


def test_reserve_credits_is_conditional():
    async def scenario():
        users = UserRepository(_database()["users"])
        user_id = await users.create({"name": "Ada", "email": "ada@example.com", "credits": 1})

        assert await users.reserve_credits(user_id, 2) is False
        assert (await users.get_by_id(user_id))["credits"] == 1

        assert await users.reserve_credits(user_id, 1) is True
        assert (await users.get_by_id(user_id))["credits"] == 0

        assert await users.add_credits(user_id, 2) is True
        assert (await users.get_by_id(user_id))["credits"] == 2

    asyncio.run(scenario())


def test_append_messages_pushes_in_order_for_owner_only():
    async def scenario():
        chats = ChatRepository(_database()["chats"])
        chat_id = await chats.create({"userId": "u1", "messages": [], "createdAt": NOW, "updatedAt": NOW})

        user_message = {"role": "user", "content": "hi", "timestamp": 1}
        reply = {"role": "assistant", "content": "hello", "timestamp": 2}
        assert await chats.append_messages(chat_id, "someone-else", [user_message, reply]) is False
        assert await chats.append_messages(chat_id, "u1", [user_message, reply]) is True

        doc = await chats.get_for_user(chat_id, "u1")
        assert [m["content"] for m in doc["messages"]] == ["hi", "hello"]

    asyncio.run(scenario())


def test_delete_empty_before_keeps_used_and_fresh_chats():
    async def scenario():
        chats = ChatRepository(_database()["chats"])
        old = NOW - timedelta(minutes=30)
        blank = [{"role": "user", "content": "  ", "timestamp": 1}]
        used = [{"role": "user", "content": "hi", "timestamp": 1}]

        stale_empty = await chats.create({"userId": "u1", "messages": [], "createdAt": old})
        stale_blank = await chats.create({"userId": "u1", "messages": blank, "createdAt": old})
        stale_used = await chats.create({"userId": "u1", "messages": used, "createdAt": old})
        fresh_empty = await chats.create({"userId": "u1", "messages": [], "createdAt": NOW})

        deleted = await chats.delete_empty_before(NOW - timedelta(minutes=15))

        assert deleted == 2
        assert await chats.get_by_id(stale_empty) is None
        assert await chats.get_by_id(stale_blank) is None
        assert await chats.get_by_id(stale_used) is not None
        assert await chats.get_by_id(fresh_empty) is not None

    asyncio.run(scenario())


def test_list_published_images_newest_first():
    async def scenario():
        chats = ChatRepository(_database()["chats"])
        await chats.create({"userId": "u1", "userName": "Ada", "createdAt": NOW, "messages": [
            {"role": "assistant", "content": "https://img/old.png", "timestamp": 100, "isImage": True, "isPublished": True},
            {"role": "assistant", "content": "https://img/hidden.png", "timestamp": 150, "isImage": True, "isPublished": False},
        ]})
        await chats.create({"userId": "u2", "userName": "Grace", "createdAt": NOW, "messages": [
            {"role": "assistant", "content": "https://img/new.png", "timestamp": 200, "isImage": True, "isPublished": True},
            {"role": "assistant", "content": "plain text", "timestamp": 300, "isImage": False, "isPublished": False},
        ]})

        assert await chats.list_published_images() == [
            {"imageUrl": "https://img/new.png", "userName": "Grace"},
            {"imageUrl": "https://img/old.png", "userName": "Ada"},
        ]

    asyncio.run(scenario())


def test_mark_paid_only_flips_once():
    async def scenario():
        transactions = TransactionRepository(_database()["transactions"])
        transaction_id = await transactions.create({
            "userId": "u1", "planId": "basic", "amount": 10, "credits": 100, "isPaid": False, "createdAt": NOW
        })

        first = await transactions.mark_paid(transaction_id)
        second = await transactions.mark_paid(transaction_id)

        assert first["isPaid"] is True
        assert first["credits"] == 100
        assert second is None

    asyncio.run(scenario())
