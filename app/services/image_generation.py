import time

import httpx
from starlette.concurrency import run_in_threadpool

from app.core.exceptions import ExternalServiceException
from app.core.logging import get_logger
from app.core.metrics import AI_REQUEST_LATENCY
from app.utils.imagekit import build_generation_url, fetch_image, upload_image_to_imagekit

logger = get_logger("image_generation")


async def generate_image(prompt: str) -> str:
    """
    Render `prompt` through ImageKit's generation URL, then re-upload the
    result so the reply points at a stable hosted file. Returns that URL.
    """
    file_name = f"{int(time.time() * 1000)}.png"
    generation_url = build_generation_url(prompt, file_name=file_name)
    start_time = time.time()
    try:
        image_data = await fetch_image(generation_url)
    except httpx.HTTPError as e:
        logger.error(f"Image generation failed: {type(e).__name__}: {e}")
        raise ExternalServiceException(
            "imagekit",
            message="Image generation failed",
            details={"error": str(e)}
        )
    finally:
        AI_REQUEST_LATENCY.labels(kind="image").observe(time.time() - start_time)

    try:
        url = await run_in_threadpool(upload_image_to_imagekit, image_data, file_name)
    except Exception as e:
        logger.error(f"ImageKit upload failed: {type(e).__name__}: {e}")
        raise ExternalServiceException(
            "imagekit",
            message="Image upload failed",
            details={"error": str(e)}
        )

    if not url:
        raise ExternalServiceException("imagekit", message="Image upload returned no URL")
    return url
