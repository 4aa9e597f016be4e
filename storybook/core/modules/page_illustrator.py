"""
Module for generating page illustrations using Nano Banana Pro.

Each page's prompt already carries the character design document, so one
text prompt in produces one image out. Calls go through the async client so
in-flight requests can be cancelled when a sibling page fails.
"""

import asyncio
import logging
from typing import Optional

from google import genai

from storybook.config import (
    ImageOptions,
    get_image_client,
    get_image_config,
    extract_image_from_response,
    image_retry,
)
from ..errors import GenerationError

logger = logging.getLogger(__name__)


class PageIllustrator:
    """
    Generate one illustration per prompt with Nano Banana Pro.

    Args:
        client: Explicit genai client. Built from options when omitted.
        options: Model, aspect ratio, default size and timeout
    """

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        options: Optional[ImageOptions] = None,
    ):
        self.options = options or ImageOptions()
        self.client = client or get_image_client(self.options)

    async def generate(self, prompt: str, size: Optional[str] = None) -> str:
        """
        Generate an illustration for a prompt.

        Args:
            prompt: Full illustration prompt
            size: Image size override (e.g. "1K", "2K")

        Returns:
            The image as a base64 string

        Raises:
            GenerationError: If the call fails or times out
            ParseError: If the response carries no image
        """
        try:
            response = await asyncio.wait_for(
                self._request(prompt, size),
                timeout=self.options.timeout_seconds,
            )
        except TimeoutError as e:
            raise GenerationError(
                "image", f"Timed out after {self.options.timeout_seconds:g}s"
            ) from e
        except Exception as e:
            raise GenerationError("image", str(e) or type(e).__name__) from e

        return extract_image_from_response(response)

    @image_retry
    async def _request(self, prompt: str, size: Optional[str]):
        """Single API call, retried on server errors and rate limits."""
        return await self.client.aio.models.generate_content(
            model=self.options.model,
            contents=prompt,
            config=get_image_config(self.options, size),
        )
