"""Pydantic models for API requests and responses."""

from .requests import GenerateStoryRequest
from .responses import StoryPayload, PagePayload, ErrorResponse, HealthResponse

__all__ = [
    "GenerateStoryRequest",
    "StoryPayload",
    "PagePayload",
    "ErrorResponse",
    "HealthResponse",
]
