# Story-first workflow
from .story_text import StoryTextSignature
from .character_extractor import CharacterExtractorSignature
from .character_profile import (
    MainCharacterProfileSignature,
    SecondaryCharacterProfileSignature,
)

__all__ = [
    "StoryTextSignature",
    "CharacterExtractorSignature",
    "MainCharacterProfileSignature",
    "SecondaryCharacterProfileSignature",
]
