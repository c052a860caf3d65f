from datetime import datetime, timedelta, timezone
from typing import List

from app.core.config import settings
from app.core.exceptions import ResourceNotFoundException
from app.core.logging import get_logger
from app.domain.models.chat import Chat
from app.domain.models.user import User, PublishedImage

logger = get_logger("chats")


def new_chat_document(user: User) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "userId": user.id,
        "userName": user.name,
        "name": "New Chat",
        "messages": [],
        "createdAt": now,
        "updatedAt": now,
    }


async def create_chat(user: User, chats) -> Chat:
    data = new_chat_document(user)
    chat_id = await chats.create(data)
    logger.info(f"Chat {chat_id} created for user {user.id}")
    return Chat(**{**data, "_id": chat_id})


async def get_or_create_empty_chat(user: User, chats) -> Chat:
    """
    Return the user's most recent empty chat, creating one if there is none.
    Called on login so repeated logins do not pile up blank chats.
    """
    existing = await chats.find_empty_for_user(user.id)
    if existing:
        return Chat(**existing)
    return await create_chat(user, chats)


async def list_chats(user: User, chats) -> List[Chat]:
    return [Chat(**doc) for doc in await chats.list_for_user(user.id)]


async def get_chat(user: User, chat_id: str, chats) -> Chat:
    doc = await chats.get_for_user(chat_id, user.id)
    if not doc:
        raise ResourceNotFoundException("Chat", chat_id)
    return Chat(**doc)


async def delete_chat(user: User, chat_id: str, chats) -> None:
    deleted = await chats.delete_for_user(chat_id, user.id)
    if not deleted:
        raise ResourceNotFoundException("Chat", chat_id)
    logger.info(f"Chat {chat_id} deleted by user {user.id}")


async def cleanup_empty_chats(chats, ttl_minutes: int = None) -> int:
    ttl = settings.EMPTY_CHAT_TTL_MINUTES if ttl_minutes is None else ttl_minutes
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=ttl)
    deleted = await chats.delete_empty_before(cutoff)
    if deleted:
        logger.info(f"Deleted {deleted} empty chats older than {ttl} minutes")
    return deleted


async def list_published_images(chats, limit: int = 100) -> List[PublishedImage]:
    return [PublishedImage(**doc) for doc in await chats.list_published_images(limit)]
