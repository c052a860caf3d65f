from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime
import time

from app.domain.models.base import MongoModel
from app.core.validators import is_non_empty_string, is_valid_object_id


def now_ms() -> int:
    """Current time as epoch milliseconds, the timestamp unit used for messages."""
    return int(time.time() * 1000)


class Message(MongoModel):
    """A single chat message; for image replies `content` is the hosted image URL"""
    role: Literal["user", "assistant"]
    content: str
    timestamp: int = Field(default_factory=now_ms)
    is_image: bool = Field(False, alias="isImage")
    is_published: bool = Field(False, alias="isPublished")


class Chat(MongoModel):
    """Model for chat API responses"""
    id: str = Field(alias="_id")
    user_id: str = Field(alias="userId")
    user_name: str = Field("", alias="userName")
    name: str = "New Chat"
    messages: List[Message] = []
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "66a1f0c2e4b0a1b2c3d4e5f7",
                "userId": "66a1f0c2e4b0a1b2c3d4e5f6",
                "userName": "John Doe",
                "name": "New Chat",
                "messages": [
                    {"role": "user", "content": "Hello", "timestamp": 1721900000000,
                     "isImage": False, "isPublished": False},
                    {"role": "assistant", "content": "Hi! How can I help?", "timestamp": 1721900001000,
                     "isImage": False, "isPublished": False}
                ],
                "createdAt": "2024-07-25T10:00:00",
                "updatedAt": "2024-07-25T10:00:01"
            }
        }
    )


class ChatIdRequest(BaseModel):
    chat_id: str = Field(alias="chatId")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("chat_id")
    @classmethod
    def chat_id_is_object_id(cls, value: str) -> str:
        if not is_valid_object_id(value):
            raise ValueError("chatId is not a valid id")
        return value


class MessageRequest(ChatIdRequest):
    prompt: str
    is_published: bool = Field(False, alias="isPublished")

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        if not is_non_empty_string(value):
            raise ValueError("prompt must not be blank")
        return value


class SpeechRequest(BaseModel):
    text: str
    max_chunk_length: int = Field(200, alias="maxChunkLength", ge=20, le=1000)

    model_config = ConfigDict(populate_by_name=True)


class ChatResponse(BaseModel):
    success: bool = True
    message: str
    chat: Chat


class ChatListResponse(BaseModel):
    success: bool = True
    chats: List[Chat]


class MessageReplyResponse(BaseModel):
    success: bool = True
    reply: Message


class SpeechResponse(BaseModel):
    success: bool = True
    lang: str
    text: str
    chunks: List[str]


class StatusResponse(BaseModel):
    success: bool = True
    message: str
