"""FastAPI dependency injection for the story pipeline."""

from typing import Annotated

from fastapi import Depends, Request

from storybook.core.programs.story_pipeline import StoryPipeline


def get_pipeline(request: Request) -> StoryPipeline:
    """The StoryPipeline built at startup (see main.lifespan)."""
    return request.app.state.pipeline


# Type alias for cleaner route signatures
Pipeline = Annotated[StoryPipeline, Depends(get_pipeline)]
