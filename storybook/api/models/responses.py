"""Pydantic models for API responses."""

from pydantic import BaseModel

from storybook.core.progress import StoryPayload, PagePayload


class ErrorResponse(BaseModel):
    """Body of a failed generation: a message safe to show the customer."""

    error: str


class HealthResponse(BaseModel):
    status: str
    demo_mode: bool
    profile: str


__all__ = ["StoryPayload", "PagePayload", "ErrorResponse", "HealthResponse"]
