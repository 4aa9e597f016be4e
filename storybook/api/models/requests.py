"""Pydantic models for API requests."""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from storybook.core.types import QuizInput, StoryType

VALID_TRAITS = {
    "Curious", "Playful", "Brave", "Kind", "Funny", "Creative",
    "Energetic", "Gentle", "Smart", "Adventurous", "Caring", "Determined",
    # Legacy/extended
    "Athletic", "Helpful", "Artistic", "Musical",
}

VALID_FAVORITE_THINGS = {
    "Animals", "Space", "Dinosaurs", "Princesses", "Pirates",
    "Cars & Trucks", "Sports", "Music", "Art", "Nature",
    "Superheroes", "Magic",
    # Legacy/extended
    "Ocean", "Forest", "Cars", "Books", "Adventure", "Family", "Friends",
}

SHORT_TEXT_LIMIT = 255
LONG_TEXT_LIMIT = 1500

# Letters (including Latin extended ranges), spaces, hyphens and apostrophes
_NAME_PATTERN = re.compile(r"^[A-Za-z\u00C0-\u00FF\u0100-\u024F\u1E00-\u1EFF\u2C60-\u2C7F\uA720-\uA7FF\s'-]+$")
_EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_AGE_PATTERN = re.compile(r"\d{1,2}")
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_JAVASCRIPT_URL = re.compile(r"javascript:", re.IGNORECASE)


def sanitize_text(value: str, limit: int = SHORT_TEXT_LIMIT) -> str:
    """Trim, strip markup and script vectors, and cap the length."""
    value = value.strip().replace("<", "").replace(">", "")
    value = _JAVASCRIPT_URL.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    return value[:limit]


class GenerateStoryRequest(BaseModel):
    """Quiz answers submitted to start a story.

    Accepts the camelCase keys the quiz client sends (childName, childAge, ...).
    Text fields are sanitized before they are validated.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    child_name: str = Field(..., min_length=2, max_length=50, examples=["Alice"])
    child_age: str = Field(..., description='Age 3-12, e.g. "5" or "5 years"', examples=["5 years"])
    child_traits: list[str] = Field(..., min_length=1, max_length=3, examples=[["Brave", "Kind"]])
    favorite_things: list[str] = Field(..., min_length=1, max_length=4, examples=[["Animals"]])
    story_type: StoryType
    story_description: Optional[str] = Field(default=None, max_length=LONG_TEXT_LIMIT)
    parent_email: str = Field(..., max_length=SHORT_TEXT_LIMIT)
    parent_consent: bool

    @field_validator("child_name", "child_age", mode="before")
    @classmethod
    def _sanitize_short(cls, value):
        return sanitize_text(value) if isinstance(value, str) else value

    @field_validator("parent_email", mode="before")
    @classmethod
    def _sanitize_email(cls, value):
        return sanitize_text(value.lower()) if isinstance(value, str) else value

    @field_validator("story_type", mode="before")
    @classmethod
    def _sanitize_story_type(cls, value):
        return sanitize_text(value) if isinstance(value, str) else value

    @field_validator("story_description", mode="before")
    @classmethod
    def _sanitize_description(cls, value):
        if isinstance(value, str):
            return sanitize_text(value, LONG_TEXT_LIMIT) or None
        return value

    @field_validator("child_traits", "favorite_things", mode="before")
    @classmethod
    def _sanitize_tags(cls, value):
        if isinstance(value, list):
            return [sanitize_text(v) if isinstance(v, str) else v for v in value]
        return value

    @field_validator("child_name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _NAME_PATTERN.match(value):
            raise ValueError("Child's name contains invalid characters")
        return value

    @field_validator("child_age")
    @classmethod
    def _check_age(cls, value: str) -> str:
        match = _AGE_PATTERN.search(value)
        if not match or not 3 <= int(match.group()) <= 12:
            raise ValueError("Please select a valid age")
        return value

    @field_validator("child_traits")
    @classmethod
    def _check_traits(cls, value: list[str]) -> list[str]:
        if not all(trait in VALID_TRAITS for trait in value):
            raise ValueError("Invalid personality traits selected")
        return value

    @field_validator("favorite_things")
    @classmethod
    def _check_favorite_things(cls, value: list[str]) -> list[str]:
        if not all(thing in VALID_FAVORITE_THINGS for thing in value):
            raise ValueError("Invalid favorite things selected")
        return value

    @field_validator("parent_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not _EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("parent_consent")
    @classmethod
    def _check_consent(cls, value: bool) -> bool:
        if not value:
            raise ValueError("Parental consent is required for children under 13")
        return value

    def to_quiz_input(self) -> QuizInput:
        """The validated answers as the pipeline's input type."""
        return QuizInput(
            child_name=self.child_name,
            child_age=self.child_age,
            story_type=self.story_type,
            child_traits=tuple(self.child_traits),
            favorite_things=tuple(self.favorite_things),
            story_description=self.story_description,
            parent_email=self.parent_email,
            parent_consent=self.parent_consent,
        )
