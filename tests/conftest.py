import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("LOG_TO_FILE", "False")
os.environ.setdefault("APP_ID", "quickgpt")

import copy
import json
import re
from datetime import datetime, timezone

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.main import app
from app.auth.auth_utils import create_user_token, hash_password
from app.infrastructure.database.providers import (
    get_chat_repository,
    get_transaction_repository,
    get_user_repository
)
from app.services.providers import (
    get_checkout_service,
    get_image_generation_service,
    get_session_lookup_service,
    get_text_generation_service,
    get_webhook_event_service
)


def _now():
    return datetime.now(timezone.utc)


class InMemoryCollection:
    """Stores documents by string id; returns deep copies like a real driver would."""
    def __init__(self):
        self.docs = {}

    async def get_by_id(self, id):
        doc = self.docs.get(id)
        return copy.deepcopy(doc) if doc else None

    async def create(self, data):
        doc = copy.deepcopy(data)
        doc.setdefault("_id", str(ObjectId()))
        self.docs[doc["_id"]] = doc
        return doc["_id"]


class FakeUserRepository(InMemoryCollection):
    async def get_by_email(self, email):
        for doc in self.docs.values():
            if doc["email"] == email:
                return copy.deepcopy(doc)
        return None

    async def reserve_credits(self, user_id, amount):
        doc = self.docs.get(user_id)
        if not doc or doc["credits"] < amount:
            return False
        doc["credits"] -= amount
        return True

    async def add_credits(self, user_id, amount):
        doc = self.docs.get(user_id)
        if not doc:
            return False
        doc["credits"] += amount
        return True


class FakeChatRepository(InMemoryCollection):
    async def get_for_user(self, chat_id, user_id):
        doc = self.docs.get(chat_id)
        if doc and doc["userId"] == user_id:
            return copy.deepcopy(doc)
        return None

    async def list_for_user(self, user_id):
        docs = [copy.deepcopy(d) for d in self.docs.values() if d["userId"] == user_id]
        return sorted(docs, key=lambda d: d["updatedAt"], reverse=True)

    async def find_empty_for_user(self, user_id):
        for doc in await self.list_for_user(user_id):
            if not doc["messages"]:
                return doc
        return None

    async def delete_for_user(self, chat_id, user_id):
        doc = self.docs.get(chat_id)
        if doc and doc["userId"] == user_id:
            del self.docs[chat_id]
            return True
        return False

    async def append_messages(self, chat_id, user_id, messages):
        doc = self.docs.get(chat_id)
        if not doc or doc["userId"] != user_id:
            return False
        doc["messages"].extend(copy.deepcopy(messages))
        doc["updatedAt"] = _now()
        return True

    async def delete_empty_before(self, cutoff):
        expired = [
            chat_id for chat_id, doc in self.docs.items()
            if doc["createdAt"] < cutoff
            and (not doc["messages"] or re.match(r"^\s*$", doc["messages"][0]["content"]))
        ]
        for chat_id in expired:
            del self.docs[chat_id]
        return len(expired)

    async def list_published_images(self, limit=100):
        images = [
            (m["timestamp"], {"imageUrl": m["content"], "userName": doc["userName"]})
            for doc in self.docs.values()
            for m in doc["messages"]
            if m.get("isImage") and m.get("isPublished")
        ]
        images.sort(key=lambda item: item[0], reverse=True)
        return [image for _, image in images[:limit]]


class FakeTransactionRepository(InMemoryCollection):
    async def list_for_user(self, user_id):
        docs = [copy.deepcopy(d) for d in self.docs.values() if d["userId"] == user_id]
        return sorted(docs, key=lambda d: d["createdAt"], reverse=True)

    async def mark_paid(self, transaction_id):
        doc = self.docs.get(transaction_id)
        if not doc or doc["isPaid"]:
            return None
        doc["isPaid"] = True
        doc["paidAt"] = _now()
        return copy.deepcopy(doc)


class StubGenerator:
    """Records calls and returns a canned result, or raises `error` when set."""
    def __init__(self, result):
        self.result = result
        self.error = None
        self.calls = []

    async def __call__(self, *args):
        self.calls.append(args)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def users():
    return FakeUserRepository()


@pytest.fixture
def chats():
    return FakeChatRepository()


@pytest.fixture
def transactions():
    return FakeTransactionRepository()


@pytest.fixture
def text_generator():
    return StubGenerator("Hello from the assistant")


@pytest.fixture
def image_generator():
    return StubGenerator("https://ik.imagekit.io/demo/quickgpt/generated.png")


@pytest.fixture
def checkout():
    calls = []

    def create_checkout_session(transaction_id, plan, origin):
        calls.append((transaction_id, plan, origin))
        return f"https://checkout.stripe.com/c/pay/{transaction_id}"

    create_checkout_session.calls = calls
    return create_checkout_session


@pytest.fixture
def stripe_sessions():
    return {}


@pytest.fixture
def client(users, chats, transactions, text_generator, image_generator, checkout, stripe_sessions):
    app.dependency_overrides[get_user_repository] = lambda: users
    app.dependency_overrides[get_chat_repository] = lambda: chats
    app.dependency_overrides[get_transaction_repository] = lambda: transactions
    app.dependency_overrides[get_text_generation_service] = lambda: text_generator
    app.dependency_overrides[get_image_generation_service] = lambda: image_generator
    app.dependency_overrides[get_checkout_service] = lambda: checkout
    # Webhook payloads in tests are plain JSON, no signature
    app.dependency_overrides[get_webhook_event_service] = lambda: (lambda payload, signature: json.loads(payload))
    app.dependency_overrides[get_session_lookup_service] = lambda: (lambda payment_intent_id: stripe_sessions.get(payment_intent_id, []))
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(users):
    """Insert a user directly and return `(user_id, auth_headers)`."""
    def _make(name="Test User", email="tester@example.com", password="secret123", credits=20):
        user_id = str(ObjectId())
        users.docs[user_id] = {
            "_id": user_id,
            "name": name,
            "email": email,
            "password": hash_password(password),
            "credits": credits,
        }
        return user_id, {"Authorization": create_user_token(user_id)}
    return _make


@pytest.fixture
def make_chat(chats):
    def _make(user_id, user_name="Test User", messages=None, created_at=None):
        now = created_at or _now()
        chat_id = str(ObjectId())
        chats.docs[chat_id] = {
            "_id": chat_id,
            "userId": user_id,
            "userName": user_name,
            "name": "New Chat",
            "messages": messages or [],
            "createdAt": now,
            "updatedAt": now,
        }
        return chat_id
    return _make
