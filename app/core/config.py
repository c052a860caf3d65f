import os
from pydantic_settings import BaseSettings
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Settings(BaseSettings):
    # App settings
    APP_NAME: str = os.getenv("APP_NAME", "QuickGPT API")
    APP_ID: str = os.getenv("APP_ID", "quickgpt")
    DEBUG: bool = os.getenv("DEBUG", "True").lower() == "true"
    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")

    # CORS settings
    CORS_ORIGINS: Optional[str] = os.getenv("CORS_ORIGINS")

    # MongoDB settings
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_NAME: str = os.getenv("MONGODB_NAME", "quickgpt")

    # Security settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))  # 30 days
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")

    # OpenAI-compatible completion API
    AI_API_KEY: str = os.getenv("AI_API_KEY", "")
    AI_BASE_URL: str = os.getenv("AI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/")
    AI_MODEL: str = os.getenv("AI_MODEL", "gemini-2.0-flash")
    AI_CONTEXT_MESSAGES: int = int(os.getenv("AI_CONTEXT_MESSAGES", "10"))
    AI_TIMEOUT_SECONDS: float = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))

    # ImageKit settings
    IMAGEKIT_PUBLIC_KEY: str = os.getenv("IMAGEKIT_PUBLIC_KEY", "")
    IMAGEKIT_PRIVATE_KEY: str = os.getenv("IMAGEKIT_PRIVATE_KEY", "")
    IMAGEKIT_URL_ENDPOINT: str = os.getenv("IMAGEKIT_URL_ENDPOINT", "")
    IMAGEKIT_FOLDER: str = os.getenv("IMAGEKIT_FOLDER", "quickgpt")
    IMAGE_SIZE: int = int(os.getenv("IMAGE_SIZE", "800"))

    # Stripe settings
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_CURRENCY: str = os.getenv("STRIPE_CURRENCY", "usd")

    # Credits
    DEFAULT_CREDITS: int = int(os.getenv("DEFAULT_CREDITS", "20"))
    TEXT_MESSAGE_COST: int = int(os.getenv("TEXT_MESSAGE_COST", "1"))
    IMAGE_MESSAGE_COST: int = int(os.getenv("IMAGE_MESSAGE_COST", "2"))

    # Empty chat expiry
    EMPTY_CHAT_TTL_MINUTES: int = int(os.getenv("EMPTY_CHAT_TTL_MINUTES", "15"))
    EMPTY_CHAT_CLEANUP_INTERVAL_SECONDS: int = int(os.getenv("EMPTY_CHAT_CLEANUP_INTERVAL_SECONDS", "300"))

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "True").lower() == "true"
    # "json" or "text" for console output; the log file is always JSON
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }

    @property
    def cors_origins(self) -> List[str]:
        if self.CORS_ORIGINS:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return list(dict.fromkeys([self.CLIENT_URL, "http://localhost:3000", "http://localhost:5173"]))

settings = Settings()
