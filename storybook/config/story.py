"""
Story pipeline settings for the Personalized Storybook Generator.

Two profiles mirror how the product is run:
- FULL_PROFILE: what customers get (10 illustrated pages, 3 supporting characters)
- FAST_PROFILE: development/testing (5 pages, 2 supporting characters)
"""

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Story generation constants
STORY_CONSTANTS = {
    "paragraph_count": 10,  # Paragraphs requested from the story writer
    "sentences_per_paragraph": "3-4",
    "name_mentions_min": 15,  # Child's name should appear throughout
    "default_image_concurrency": 4,
}

FULL_PROFILE = {
    "target_page_count": 10,
    "max_secondary_characters": 3,
}

FAST_PROFILE = {
    "target_page_count": 5,
    "max_secondary_characters": 2,
}

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class PipelineSettings:
    """Tunable knobs for one StoryPipeline.

    Passed explicitly into the pipeline; nothing below the API/CLI edge
    reads the environment.
    """

    target_page_count: int = FULL_PROFILE["target_page_count"]
    max_secondary_characters: int = FULL_PROFILE["max_secondary_characters"]
    image_concurrency: int = STORY_CONSTANTS["default_image_concurrency"]
    image_size: str | None = None
    profile_name: str = "full"

    def __post_init__(self):
        if self.target_page_count < 1:
            raise ValueError("target_page_count must be at least 1")
        if self.max_secondary_characters < 0:
            raise ValueError("max_secondary_characters cannot be negative")
        if self.image_concurrency < 1:
            raise ValueError("image_concurrency must be at least 1")

    @classmethod
    def full(cls, **overrides) -> "PipelineSettings":
        """Settings for the customer-facing profile."""
        return replace(cls(**FULL_PROFILE, profile_name="full"), **overrides)

    @classmethod
    def fast(cls, **overrides) -> "PipelineSettings":
        """Settings for the fast development profile."""
        return replace(cls(**FAST_PROFILE, profile_name="fast"), **overrides)

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """
        Build settings from environment variables.

        STORYBOOK_DEV_MODE selects the fast profile; individual values can be
        overridden with TARGET_PAGE_COUNT, MAX_SECONDARY_CHARACTERS,
        IMAGE_CONCURRENCY and IMAGE_SIZE.
        """
        base = cls.fast() if is_dev_mode() else cls.full()

        overrides = {}
        if os.getenv("TARGET_PAGE_COUNT"):
            overrides["target_page_count"] = int(os.environ["TARGET_PAGE_COUNT"])
        if os.getenv("MAX_SECONDARY_CHARACTERS"):
            overrides["max_secondary_characters"] = int(os.environ["MAX_SECONDARY_CHARACTERS"])
        if os.getenv("IMAGE_CONCURRENCY"):
            overrides["image_concurrency"] = int(os.environ["IMAGE_CONCURRENCY"])
        if os.getenv("IMAGE_SIZE"):
            overrides["image_size"] = os.environ["IMAGE_SIZE"]

        return replace(base, **overrides)


def is_dev_mode() -> bool:
    """True when the fast development profile was requested."""
    return os.getenv("STORYBOOK_DEV_MODE", "").lower() in _TRUTHY


def is_demo_mode() -> bool:
    """
    True when the pipeline should run on offline demo generators.

    Demo mode is forced with STORYBOOK_DEMO_MODE, and is also used when no
    provider API key is configured at all.
    """
    if os.getenv("STORYBOOK_DEMO_MODE", "").lower() in _TRUTHY:
        return True
    return not any(
        os.getenv(key)
        for key in ("GOOGLE_API_KEY", "ANTHROPIC_API_KEY", "OPENAI_API_KEY")
    )
