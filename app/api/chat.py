from fastapi import APIRouter, Depends

from app.auth.router import get_current_user
from app.domain.models.chat import ChatIdRequest, ChatListResponse, ChatResponse, StatusResponse
from app.domain.models.user import User
from app.infrastructure.database.providers import get_chat_repository
from app.services.chats import create_chat, delete_chat, list_chats

router = APIRouter()


@router.api_route("/create", methods=["GET", "POST"], response_model=ChatResponse)
async def create_chat_endpoint(
    current_user: User = Depends(get_current_user),
    chats=Depends(get_chat_repository)
):
    """
    Start a new empty chat for the current user.
    """
    chat = await create_chat(current_user, chats)
    return ChatResponse(message="Chat created", chat=chat)


@router.get("/get", response_model=ChatListResponse)
async def get_chats(
    current_user: User = Depends(get_current_user),
    chats=Depends(get_chat_repository)
):
    """
    List the current user's chats, most recently updated first.
    """
    return ChatListResponse(chats=await list_chats(current_user, chats))


@router.post("/delete", response_model=StatusResponse)
async def delete_chat_endpoint(
    payload: ChatIdRequest,
    current_user: User = Depends(get_current_user),
    chats=Depends(get_chat_repository)
):
    await delete_chat(current_user, payload.chat_id, chats)
    return StatusResponse(message="Chat deleted")
