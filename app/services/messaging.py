"""
Text and image message sending.

Both kinds follow the same sequence: load the chat, reserve the cost with an
atomic conditional debit, call the vendor, then append the user message and the
reply in a single update. Any failure after the debit refunds it, so a user is
charged exactly once per persisted reply and never for a failed one.
"""
from typing import Awaitable, Callable, List

from app.core.config import settings
from app.core.exceptions import InsufficientCreditsException, ResourceNotFoundException
from app.core.logging import get_logger
from app.core.metrics import AI_REQUESTS, CREDITS_SPENT
from app.domain.models.chat import Message, MessageRequest
from app.domain.models.user import User
from app.services.chats import get_chat

logger = get_logger("messaging")

TextGenerator = Callable[[str, List[Message]], Awaitable[str]]
ImageGenerator = Callable[[str], Awaitable[str]]


async def _reserve(user: User, cost: int, users) -> None:
    if not await users.reserve_credits(user.id, cost):
        current = await users.get_by_id(user.id)
        available = current.get("credits") if current else None
        raise InsufficientCreditsException(required=cost, available=available)


async def _refund(user: User, cost: int, kind: str, chat_id: str, users) -> None:
    try:
        await users.add_credits(user.id, cost)
    except Exception as e:
        logger.error(
            f"Could not refund {cost} credits to user {user.id} after failed {kind} message: {e}",
            extra={"chat_id": chat_id}
        )
        return
    logger.warning(
        f"Refunded {cost} credits to user {user.id} after failed {kind} message",
        extra={"chat_id": chat_id}
    )


async def _send(user: User, request: MessageRequest, kind: str, cost: int, users, chats, produce) -> Message:
    chat = await get_chat(user, request.chat_id, chats)
    await _reserve(user, cost, users)

    user_message = Message(role="user", content=request.prompt)
    reply = None
    try:
        reply = await produce(chat)
        AI_REQUESTS.labels(kind=kind, outcome="success").inc()
        appended = await chats.append_messages(
            request.chat_id,
            user.id,
            [user_message.model_dump(by_alias=True), reply.model_dump(by_alias=True)]
        )
        if not appended:
            raise ResourceNotFoundException("Chat", request.chat_id)
    except BaseException:
        # CancelledError included: a dropped client must not keep the debit
        if reply is None:
            AI_REQUESTS.labels(kind=kind, outcome="failure").inc()
        await _refund(user, cost, kind, request.chat_id, users)
        raise

    CREDITS_SPENT.labels(kind=kind).inc(cost)
    logger.info(f"{kind.capitalize()} message sent in chat {request.chat_id} by user {user.id} ({cost} credits)")
    return reply


async def send_text_message(user: User, request: MessageRequest, users, chats, generate_text: TextGenerator) -> Message:
    async def produce(chat):
        content = await generate_text(request.prompt, chat.messages)
        return Message(role="assistant", content=content)

    return await _send(user, request, "text", settings.TEXT_MESSAGE_COST, users, chats, produce)


async def send_image_message(user: User, request: MessageRequest, users, chats, generate_image: ImageGenerator) -> Message:
    async def produce(chat):
        url = await generate_image(request.prompt)
        return Message(role="assistant", content=url, is_image=True, is_published=request.is_published)

    return await _send(user, request, "image", settings.IMAGE_MESSAGE_COST, users, chats, produce)
