"""
Centralized domain types for the Personalized Storybook Generator.

All dataclasses that are used across multiple modules are defined here
to make data flow explicit and avoid circular imports. Every value is
created fresh for one pipeline run and never persisted by the core.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar


# =============================================================================
# Quiz Types
# =============================================================================


class StoryType(str, Enum):
    """Story types offered by the quiz."""

    EVERYDAY_ADVENTURE = "everyday-adventure"
    MAGICAL_JOURNEY = "magical-journey"
    BRAVE_HERO = "brave-hero"
    BEDTIME_STORY = "bedtime-story"

    @property
    def description(self) -> str:
        """The long-form story type the writer is asked for."""
        return STORY_TYPE_DESCRIPTIONS[self]

    @property
    def tone(self) -> str:
        """The writing tone for this story type."""
        return STORY_TONES.get(self.description, DEFAULT_TONE)


STORY_TYPE_DESCRIPTIONS = {
    StoryType.EVERYDAY_ADVENTURE: "A sweet everyday adventure",
    StoryType.MAGICAL_JOURNEY: "A magical and poetic dream",
    StoryType.BRAVE_HERO: "A big mission in an imaginary world",
    StoryType.BEDTIME_STORY: "A calm, soothing bedtime story",
}

# Tone per story description, including descriptions the quiz no longer offers
STORY_TONES = {
    "A sweet everyday adventure": "warm and comforting",
    "A big mission in an imaginary world": "exciting and adventurous",
    "A fantastic treasure hunt": "thrilling and mysterious",
    "A magical and poetic dream": "whimsical and enchanting",
    "A playful learning journey": "educational and fun",
    "A fun exploration of a new place": "curious and discovering",
    "A surprise party with twists": "playful and surprising",
    "An adventure with a talking animal": "friendly and imaginative",
    "An extraordinary sports competition": "energetic and inspiring",
    "A calm, soothing bedtime story": "peaceful and gentle",
}

DEFAULT_TONE = "engaging and positive"

# Fixed story framing used by every quiz
CHARACTER_FORM = "An ordinary child in a magical story"
CORE_MESSAGE = "You are unique and special"


@dataclass(frozen=True)
class QuizInput:
    """
    Validated, sanitized quiz answers.

    Produced by the request validation layer; the pipeline never re-validates.
    """

    child_name: str
    child_age: str  # e.g. "5" or "5 years"
    story_type: StoryType
    child_traits: tuple[str, ...] = ()  # 0-3 traits
    favorite_things: tuple[str, ...] = ()  # 0-4 tags, used as themes
    story_description: Optional[str] = None
    parent_email: str = ""
    parent_consent: bool = False

    @property
    def tone(self) -> str:
        return self.story_type.tone

    @property
    def themes(self) -> str:
        """Favorite things as a comma-separated theme list."""
        return ", ".join(self.favorite_things)


# =============================================================================
# Character Types
# =============================================================================


@dataclass(frozen=True)
class SecondaryCharacter:
    """A supporting character found in the story."""

    name: str
    role: str
    importance: int  # 1-10, higher is more important


@dataclass(frozen=True)
class CharacterProfile:
    """Visual-consistency description for one character.

    The main character's profile has no name; secondary profiles are tied
    1:1 to a SecondaryCharacter by name.
    """

    text: str
    name: Optional[str] = None

    @property
    def is_main(self) -> bool:
        return self.name is None


# =============================================================================
# Story Types
# =============================================================================


@dataclass
class Page:
    """One page of the finished book: a paragraph and its illustration."""

    text: str
    image_base64: Optional[str] = None

    @property
    def is_blank(self) -> bool:
        """True for padding pages with no story text."""
        return not self.text


@dataclass
class GeneratedStory:
    """Complete result of one pipeline run."""

    story_text: str
    pages: list[Page]
    design_document: str
    secondary_characters: list[SecondaryCharacter] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def illustrated_count(self) -> int:
        return sum(1 for page in self.pages if page.image_base64)


# =============================================================================
# Stage Outcomes
# =============================================================================


T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a best-effort stage: either a value or the error that prevented it.

    Best-effort stages return an Outcome instead of raising, so the caller
    decides explicitly what to do on failure.
    """

    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
