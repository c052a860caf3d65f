from fastapi import APIRouter, Depends

from app.auth.router import get_current_user
from app.domain.models.chat import MessageReplyResponse, MessageRequest, SpeechRequest, SpeechResponse
from app.domain.models.user import User
from app.infrastructure.database.providers import get_chat_repository, get_user_repository
from app.services.messaging import send_image_message, send_text_message
from app.services.providers import get_image_generation_service, get_text_generation_service
from app.services.speech import prepare_speech

router = APIRouter()


@router.post("/text", response_model=MessageReplyResponse)
async def text_message(
    payload: MessageRequest,
    current_user: User = Depends(get_current_user),
    users=Depends(get_user_repository),
    chats=Depends(get_chat_repository),
    generate_text=Depends(get_text_generation_service)
):
    """
    Send a prompt to the completion API. Costs one text credit.
    """
    reply = await send_text_message(current_user, payload, users, chats, generate_text)
    return MessageReplyResponse(reply=reply)


@router.post("/image", response_model=MessageReplyResponse)
async def image_message(
    payload: MessageRequest,
    current_user: User = Depends(get_current_user),
    users=Depends(get_user_repository),
    chats=Depends(get_chat_repository),
    generate_image=Depends(get_image_generation_service)
):
    """
    Generate an image from the prompt. Costs two credits; `isPublished` adds it to the community gallery.
    """
    reply = await send_image_message(current_user, payload, users, chats, generate_image)
    return MessageReplyResponse(reply=reply)


@router.post("/speech", response_model=SpeechResponse)
async def speech_text(
    payload: SpeechRequest,
    current_user: User = Depends(get_current_user)
):
    lang, text, chunks = prepare_speech(payload.text, payload.max_chunk_length)
    return SpeechResponse(lang=lang, text=text, chunks=chunks)
