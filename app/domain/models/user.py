from pydantic import BaseModel, EmailStr, ConfigDict, Field, field_validator
from typing import List

from app.domain.models.base import MongoModel
from app.core.validators import is_non_empty_string


class UserCreate(BaseModel):
    """User registration model"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not is_non_empty_string(value):
            raise ValueError("name must not be blank")
        return value.strip()


class UserLogin(BaseModel):
    """User login model"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class User(MongoModel):
    """User model for API responses"""
    id: str = Field(alias="_id")
    name: str
    email: str
    credits: int = 0

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "66a1f0c2e4b0a1b2c3d4e5f6",
                "name": "John Doe",
                "email": "user@example.com",
                "credits": 20
            }
        }
    )


class AuthResponse(BaseModel):
    success: bool = True
    token: str


class UserResponse(BaseModel):
    success: bool = True
    user: User


class PublishedImage(BaseModel):
    image_url: str = Field(alias="imageUrl")
    user_name: str = Field(alias="userName")

    model_config = ConfigDict(populate_by_name=True)


class PublishedImagesResponse(BaseModel):
    success: bool = True
    images: List[PublishedImage]
