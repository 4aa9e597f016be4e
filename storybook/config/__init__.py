"""
Configuration package for the Personalized Storybook Generator.

Re-exports all configuration for convenient access.
"""

from .llm import TextOptions, get_inference_lm, llm_retry
from .story import (
    STORY_CONSTANTS,
    FULL_PROFILE,
    FAST_PROFILE,
    PipelineSettings,
    is_dev_mode,
    is_demo_mode,
)
from .image import (
    IMAGE_CONSTANTS,
    ImageOptions,
    get_image_client,
    get_image_config,
    extract_image_from_response,
    image_retry,
)

__all__ = [
    # LLM
    "TextOptions",
    "get_inference_lm",
    "llm_retry",
    # Story
    "STORY_CONSTANTS",
    "FULL_PROFILE",
    "FAST_PROFILE",
    "PipelineSettings",
    "is_dev_mode",
    "is_demo_mode",
    # Image
    "IMAGE_CONSTANTS",
    "ImageOptions",
    "get_image_client",
    "get_image_config",
    "extract_image_from_response",
    "image_retry",
]
