from fastapi import APIRouter, Depends, Header
from typing import Optional
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.exceptions import AuthenticationException, ConflictException
from app.core.logging import get_logger
from app.auth.auth_utils import create_user_token, extract_token, hash_password, verify_password, verify_token
from app.domain.models.user import (
    AuthResponse,
    PublishedImagesResponse,
    User,
    UserCreate,
    UserLogin,
    UserResponse
)
from app.infrastructure.database.providers import get_chat_repository, get_user_repository
from app.services.chats import get_or_create_empty_chat, list_published_images

router = APIRouter()
logger = get_logger("auth")


async def get_current_user(
    authorization: Optional[str] = Header(None),
    users=Depends(get_user_repository)
) -> User:
    """
    Resolve the user from the `Authorization` header token.
    """
    token = extract_token(authorization)
    if not token:
        raise AuthenticationException("Not authorized, no token")

    payload = verify_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationException("Invalid authentication credentials")

    doc = await users.get_by_id(user_id)
    if not doc:
        raise AuthenticationException("User not found")
    return User(**doc)


@router.post("/register", response_model=AuthResponse)
async def register(payload: UserCreate, users=Depends(get_user_repository)):
    """
    Create an account and return a token for it.
    """
    email = payload.email.lower()
    if await users.get_by_email(email):
        raise ConflictException("User already exists")

    try:
        user_id = await users.create({
            "name": payload.name,
            "email": email,
            "password": hash_password(payload.password),
            "credits": settings.DEFAULT_CREDITS
        })
    except DuplicateKeyError:
        raise ConflictException("User already exists")

    logger.info(f"User {user_id} registered")
    return AuthResponse(token=create_user_token(user_id))


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: UserLogin,
    users=Depends(get_user_repository),
    chats=Depends(get_chat_repository)
):
    """
    Exchange email and password for a token. Makes sure the user has an empty chat to start in.
    """
    doc = await users.get_by_email(payload.email.lower())
    if not doc or not verify_password(payload.password, doc.get("password", "")):
        raise AuthenticationException("Invalid email or password")

    user = User(**doc)
    await get_or_create_empty_chat(user, chats)
    logger.info(f"User {user.id} logged in")
    return AuthResponse(token=create_user_token(user.id))


@router.get("/data", response_model=UserResponse)
async def get_user_data(current_user: User = Depends(get_current_user)):
    return UserResponse(user=current_user)


@router.get("/published-images", response_model=PublishedImagesResponse)
async def get_published_images(chats=Depends(get_chat_repository)):
    """
    Community gallery: image replies their owners chose to publish, newest first.
    """
    return PublishedImagesResponse(images=await list_published_images(chats))
