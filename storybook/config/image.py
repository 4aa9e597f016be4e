"""
Image generation configuration for the Personalized Storybook Generator.

Uses Nano Banana Pro (Gemini 3 Pro Image) for page illustrations.
"""

import base64
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from google import genai
from google.genai import types
from google.genai.errors import ClientError, ServerError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

from storybook.core.errors import ParseError

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Image generation constants
IMAGE_CONSTANTS = {
    "model": "gemini-3-pro-image-preview",  # Nano Banana Pro
    "aspect_ratio": "1:1",  # Square pages, like the printed book
    "image_size": "1K",
    "timeout_seconds": 180,
}

# Errors that should trigger retry (ClientError only for 429, see _is_retryable)
RETRYABLE_EXCEPTIONS = (
    ServerError,
    ConnectionError,
    TimeoutError,
    BrokenPipeError,
    OSError,
)


@dataclass(frozen=True)
class ImageOptions:
    """Knobs for the image generation capability."""

    model: str = IMAGE_CONSTANTS["model"]
    api_key: Optional[str] = None
    aspect_ratio: str = IMAGE_CONSTANTS["aspect_ratio"]
    image_size: str = IMAGE_CONSTANTS["image_size"]
    timeout_seconds: float = IMAGE_CONSTANTS["timeout_seconds"]

    @classmethod
    def from_env(cls) -> "ImageOptions":
        """Build options from STORYBOOK_IMAGE_MODEL / IMAGE_ASPECT_RATIO."""
        return cls(
            model=os.getenv("STORYBOOK_IMAGE_MODEL") or IMAGE_CONSTANTS["model"],
            aspect_ratio=os.getenv("IMAGE_ASPECT_RATIO") or IMAGE_CONSTANTS["aspect_ratio"],
        )


def get_image_client(options: Optional[ImageOptions] = None) -> genai.Client:
    """
    Get the Nano Banana Pro (Gemini 3 Pro Image) client for illustration generation.

    Uses options.api_key, falling back to GOOGLE_API_KEY from environment.
    """
    options = options or ImageOptions()
    api_key = options.api_key or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY not found in environment. Set it in .env file.")

    return genai.Client(api_key=api_key)


def get_image_config(
    options: Optional[ImageOptions] = None,
    size: Optional[str] = None,
) -> types.GenerateContentConfig:
    """Get the generation config for one illustration."""
    options = options or ImageOptions()
    return types.GenerateContentConfig(
        response_modalities=[types.Modality.TEXT, types.Modality.IMAGE],
        image_config=types.ImageConfig(
            aspect_ratio=options.aspect_ratio,
            image_size=size or options.image_size,
        ),
    )


def extract_image_from_response(response) -> str:
    """
    Extract the illustration from a Gemini API response as base64.

    Expected shape: candidates[0].content.parts holds a part with
    inline_data. Anything else is rejected.

    Raises:
        ParseError: If the response does not carry an image
    """
    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise ParseError("image", "Image response had no candidates")

    content = candidates[0].content
    parts = content.parts if content is not None else None
    if not parts:
        raise ParseError("image", "Image response had no content parts")

    for part in parts:
        inline_data = part.inline_data
        if inline_data is not None and inline_data.data:
            data = inline_data.data
            if isinstance(data, bytes):
                return base64.b64encode(data).decode("ascii")
            return data

    raise ParseError("image", "No image found in response")


def _is_retryable(error: BaseException) -> bool:
    """Server errors, rate limits and network errors are retried; other client errors are not."""
    if isinstance(error, ClientError):
        return error.code == 429
    return isinstance(error, RETRYABLE_EXCEPTIONS)


# Retry decorator for image calls (works on async functions too)
image_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=10),
    retry=retry_if_exception(_is_retryable),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
