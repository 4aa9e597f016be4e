"""Story generation endpoints."""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, StreamingResponse

from storybook.core.errors import PipelineError
from ..dependencies import Pipeline
from ..models.requests import GenerateStoryRequest
from ..models.responses import StoryPayload, ErrorResponse
from ..services.progress_stream import SSE_HEADERS, sse_events

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate",
    response_model=StoryPayload,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
    summary="Generate a story",
    description="Run the whole pipeline and return the finished story in one response. "
    "No intermediate progress is visible.",
)
async def generate_story(request: GenerateStoryRequest, pipeline: Pipeline):
    """Generate a complete story (non-streaming)."""
    try:
        story = await pipeline.run(request.to_quiz_input())
    except PipelineError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=str(e)).model_dump(),
        )

    return StoryPayload.from_story(story)


@router.post(
    "/generate/stream",
    response_class=StreamingResponse,
    summary="Generate a story with live progress",
    description="Server-sent events: `progress` events as stages run and images land, "
    "then exactly one `complete` or `error` event.",
)
async def generate_story_stream(request: GenerateStoryRequest, pipeline: Pipeline):
    """Generate a story, streaming progress events."""
    return StreamingResponse(
        sse_events(pipeline, request.to_quiz_input()),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
