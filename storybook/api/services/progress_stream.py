"""Server-sent event framing for pipeline progress.

Each event is written as `data: <json>` followed by a blank line. The
stream closes after the terminal complete/error event.
"""

import json
import logging
from typing import AsyncGenerator

from storybook.core.programs.story_pipeline import StoryPipeline
from storybook.core.progress import ProgressEvent
from storybook.core.types import QuizInput

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_sse(event: ProgressEvent) -> str:
    """Frame one event for a text/event-stream body."""
    return f"data: {json.dumps(event.to_wire())}\n\n"


async def sse_events(pipeline: StoryPipeline, quiz: QuizInput) -> AsyncGenerator[str, None]:
    """Run the pipeline and yield its events as SSE frames."""
    events = pipeline.stream(quiz)
    try:
        async for event in events:
            yield format_sse(event)
    finally:
        # Closing early (client went away) cancels the run
        await events.aclose()
