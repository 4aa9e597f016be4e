"""
Exception taxonomy for the storybook pipeline.

GenerationError  - a remote capability failed or returned unusable output
ParseError       - structured output did not match the expected schema
PipelineError    - orchestrator-level failure naming the stage (and page)

str(PipelineError) is safe to show to a customer: it never includes a
stack trace or internal identifiers.
"""

from typing import Optional


class StorybookError(Exception):
    """Base class for all storybook errors."""


class GenerationError(StorybookError):
    """A remote generation capability failed."""

    def __init__(self, capability: str, message: str):
        super().__init__(message)
        self.capability = capability
        self.message = message


class ParseError(GenerationError):
    """Remote output did not match the expected shape."""

    def __init__(self, capability: str, message: str, raw_output: str = ""):
        super().__init__(capability, message)
        self.raw_output = raw_output


class PipelineError(StorybookError):
    """
    A required pipeline stage failed.

    Attributes:
        stage: Stage id that failed (story, profiles-main, images)
        page: 1-based page number for image failures, else None
    """

    def __init__(self, stage: str, message: str, page: Optional[int] = None):
        super().__init__(message)
        self.stage = stage
        self.page = page
        self.message = message

    def __str__(self) -> str:
        return self.message


def describe_cause(error: BaseException) -> str:
    """Short human-readable cause for an error, without internals."""
    message = getattr(error, "message", None) or str(error)
    return message or type(error).__name__
