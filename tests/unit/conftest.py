"""Pytest fixtures for pipeline unit tests."""

import os

import pytest

# Unit tests never build real generators
os.environ["STORYBOOK_DEMO_MODE"] = "true"

from storybook.config import PipelineSettings  # noqa: E402
from storybook.core.programs.story_pipeline import StoryPipeline  # noqa: E402
from storybook.core.types import QuizInput, StoryType  # noqa: E402
from tests.unit.fakes import FakeWriter, FakeExtractor, FakeProfiler, FakeIllustrator  # noqa: E402


@pytest.fixture
def alice_quiz() -> QuizInput:
    """The quiz from the end-to-end scenario."""
    return QuizInput(
        child_name="Alice",
        child_age="5 years",
        child_traits=("Brave", "Kind"),
        favorite_things=("Animals",),
        story_type=StoryType.EVERYDAY_ADVENTURE,
    )


@pytest.fixture
def full_settings() -> PipelineSettings:
    return PipelineSettings.full(image_concurrency=4)


@pytest.fixture
def make_pipeline(full_settings):
    """Factory for a StoryPipeline wired to fakes; override any part by keyword."""

    def _make(**overrides) -> StoryPipeline:
        parts = {
            "writer": FakeWriter(),
            "extractor": FakeExtractor(),
            "profiler": FakeProfiler(),
            "illustrator": FakeIllustrator(),
            "settings": full_settings,
        }
        parts.update(overrides)
        return StoryPipeline(**parts)

    return _make
