import base64
import time
from typing import Optional
from urllib.parse import quote

import httpx
from imagekitio import ImageKit
from imagekitio.models.UploadFileRequestOptions import UploadFileRequestOptions

from app.core.config import settings

_imagekit: Optional[ImageKit] = None


def get_imagekit() -> ImageKit:
    global _imagekit
    if _imagekit is None:
        _imagekit = ImageKit(
            private_key=settings.IMAGEKIT_PRIVATE_KEY,
            public_key=settings.IMAGEKIT_PUBLIC_KEY,
            url_endpoint=settings.IMAGEKIT_URL_ENDPOINT,
        )
    return _imagekit


def build_generation_url(prompt: str, size: int = None, file_name: str = None) -> str:
    """
    ImageKit AI generation URL: requesting it renders the prompt into an image.
    """
    size = size or settings.IMAGE_SIZE
    file_name = file_name or f"{int(time.time() * 1000)}.png"
    endpoint = settings.IMAGEKIT_URL_ENDPOINT.rstrip("/")
    encoded_prompt = quote(prompt, safe="")
    return (
        f"{endpoint}/ik-genimg-prompt-{encoded_prompt}/{settings.IMAGEKIT_FOLDER}/{file_name}"
        f"?tr=w-{size},h-{size}"
    )


async def fetch_image(url: str, timeout: float = 120.0) -> bytes:
    """Download the rendered image; generation can take a while on first request."""
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


def upload_image_to_imagekit(image_data: bytes, file_name: str) -> str:
    """
    Upload an image to ImageKit and return its hosted URL.
    Blocking; call it from a threadpool inside async code.
    """
    encoded = base64.b64encode(image_data).decode("ascii")
    result = get_imagekit().upload_file(
        file=encoded,
        file_name=file_name,
        options=UploadFileRequestOptions(
            folder=f"/{settings.IMAGEKIT_FOLDER}/",
            use_unique_file_name=True,
        ),
    )
    return result.url
