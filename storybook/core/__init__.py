# Personalized Storybook Generator - Core Domain

# Re-export types and errors for convenient access
from .types import (
    StoryType,
    QuizInput,
    SecondaryCharacter,
    CharacterProfile,
    Page,
    GeneratedStory,
    Outcome,
)
from .errors import StorybookError, GenerationError, ParseError, PipelineError

__all__ = [
    "StoryType",
    "QuizInput",
    "SecondaryCharacter",
    "CharacterProfile",
    "Page",
    "GeneratedStory",
    "Outcome",
    "StorybookError",
    "GenerationError",
    "ParseError",
    "PipelineError",
]
