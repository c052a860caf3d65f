import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.chat import router as chat_router
from app.api.credit import router as credit_router, webhook_router
from app.api.message import router as message_router
from app.auth.router import router as user_router
from app.core.config import settings
from app.core.exceptions import AppBaseException
from app.core.logging import get_logger
from app.core.metrics import MetricsMiddleware, metrics_endpoint
from app.core.middlewares import ErrorHandlingMiddleware, exception_handler, validation_exception_handler
from app.infrastructure.database.providers import get_chat_repository
from app.services.chats import cleanup_empty_chats
from app.services.database import close_mongodb_connection, connect_to_mongodb, get_database

logger = get_logger("main")


async def expire_empty_chats_forever():
    """Delete chats nobody wrote in, every EMPTY_CHAT_CLEANUP_INTERVAL_SECONDS."""
    while True:
        try:
            await cleanup_empty_chats(get_chat_repository())
        except Exception as e:
            logger.error(f"Empty chat cleanup failed: {type(e).__name__}: {e}")
        await asyncio.sleep(settings.EMPTY_CHAT_CLEANUP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongodb()
    cleanup_task = asyncio.create_task(expire_empty_chats_forever())
    logger.info(
        f"Empty chat cleanup running every {settings.EMPTY_CHAT_CLEANUP_INTERVAL_SECONDS}s "
        f"(ttl {settings.EMPTY_CHAT_TTL_MINUTES} min)"
    )
    try:
        yield
    finally:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        await close_mongodb_connection()


app = FastAPI(
    title=settings.APP_NAME,
    description="Chat threads with text and image AI replies, metered by credits",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info(f"CORS enabled for origins: {settings.cors_origins}")

app.add_exception_handler(AppBaseException, exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(user_router, prefix=f"{settings.API_PREFIX}/user", tags=["User"])
app.include_router(chat_router, prefix=f"{settings.API_PREFIX}/chat", tags=["Chat"])
app.include_router(message_router, prefix=f"{settings.API_PREFIX}/message", tags=["Message"])
app.include_router(credit_router, prefix=f"{settings.API_PREFIX}/credit", tags=["Credit"])
# Stripe posts to /api/stripe
app.include_router(webhook_router, prefix=settings.API_PREFIX, tags=["Webhooks"])


@app.get("/")
async def root():
    return {"success": True, "message": "Server is Live!"}


@app.get("/healthz", tags=["Health"])
async def healthz():
    return {"status": "ok"}


@app.get("/readyz", tags=["Health"])
async def readyz():
    try:
        await get_database().command("ping")
        mongodb = "ready"
    except Exception as e:
        logger.error(f"MongoDB ping failed: {e}")
        mongodb = "not ready"
    return {"status": mongodb, "services": {"mongodb": mongodb}}


@app.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_endpoint()


if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
