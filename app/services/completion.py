import time
from typing import Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from app.core.config import settings
from app.core.exceptions import ExternalServiceException
from app.core.logging import get_logger
from app.core.metrics import AI_REQUEST_LATENCY
from app.domain.models.chat import Message

logger = get_logger("completion")

_client: Optional[AsyncOpenAI] = None


def get_completion_client() -> AsyncOpenAI:
    """Lazily build the OpenAI-compatible client so importing the app needs no API key."""
    global _client
    if _client is None:
        _client = AsyncOpenAI(
            api_key=settings.AI_API_KEY or "missing-api-key",
            base_url=settings.AI_BASE_URL,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    return _client


def build_prompt_messages(history: List[Message], prompt: str, limit: int) -> List[Dict[str, str]]:
    """
    Chat-completion payload: the last `limit` text messages of the chat
    followed by the new prompt. Image messages only carry a URL and are skipped.
    """
    context = [m for m in history if not m.is_image and m.content.strip()]
    if limit > 0:
        context = context[-limit:]
    else:
        context = []
    messages = [{"role": m.role, "content": m.content} for m in context]
    messages.append({"role": "user", "content": prompt})
    return messages


async def generate_text(prompt: str, history: List[Message]) -> str:
    client = get_completion_client()
    messages = build_prompt_messages(history, prompt, settings.AI_CONTEXT_MESSAGES)
    start_time = time.time()
    try:
        response = await client.chat.completions.create(
            model=settings.AI_MODEL,
            messages=messages,
        )
    except OpenAIError as e:
        logger.error(f"Completion request failed: {type(e).__name__}: {e}")
        raise ExternalServiceException(
            "completion",
            message="AI completion request failed",
            details={"error": str(e)}
        )
    finally:
        AI_REQUEST_LATENCY.labels(kind="text").observe(time.time() - start_time)

    if not response.choices or response.choices[0].message.content is None:
        raise ExternalServiceException("completion", message="AI completion returned no content")
    return response.choices[0].message.content
