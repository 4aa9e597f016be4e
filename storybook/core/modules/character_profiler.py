"""
DSPy Module for generating character visual profiles.

The main character's profile is built from the quiz; each supporting
character's profile is built from the story text. Together they form the
design document that keeps illustrations consistent.
"""

import logging
from typing import Optional

import dspy

from storybook.config import llm_retry
from ..errors import GenerationError
from ..types import QuizInput, SecondaryCharacter, CharacterProfile, CHARACTER_FORM
from ..signatures.character_profile import (
    MainCharacterProfileSignature,
    SecondaryCharacterProfileSignature,
)

logger = logging.getLogger(__name__)


class CharacterProfiler(dspy.Module):
    """
    Generate visual-consistency profiles for the story's characters.

    Args:
        lm: Explicit LM to use (None = global DSPy LM)
    """

    def __init__(self, lm: Optional[dspy.LM] = None):
        super().__init__()
        self.profile_main = dspy.ChainOfThought(MainCharacterProfileSignature)
        self.profile_secondary = dspy.ChainOfThought(SecondaryCharacterProfileSignature)
        self._lm = lm

    def forward(self, quiz: QuizInput) -> CharacterProfile:
        """Profile the main character. See main_profile()."""
        return self.main_profile(quiz)

    def main_profile(self, quiz: QuizInput) -> CharacterProfile:
        """
        Generate the main character's profile from the quiz.

        Raises:
            GenerationError: If the LM call fails or returns no text
        """
        details = (
            f"Name: {quiz.child_name}\n"
            f"Age: {quiz.child_age}\n"
            f"Personality Traits: {', '.join(quiz.child_traits) or 'not specified'}\n"
            f"Character Form: {CHARACTER_FORM}\n"
            f"Favorite Things: {quiz.themes or 'not specified'}"
        )
        story_type = f"{quiz.story_type.description} ({quiz.tone})"

        text = self._predict(
            "profiles-main",
            self.profile_main,
            character_details=details,
            story_type=story_type,
        )
        return CharacterProfile(text=text)

    def secondary_profile(
        self,
        character: SecondaryCharacter,
        story_text: str,
        main_character_name: str,
        main_character_age: str,
    ) -> CharacterProfile:
        """
        Generate one supporting character's profile from the story.

        Raises:
            GenerationError: If the LM call fails or returns no text
        """
        text = self._predict(
            "profiles-secondary",
            self.profile_secondary,
            character_name=character.name,
            character_role=character.role,
            story_text=story_text,
            main_character=f"{main_character_name}, age {main_character_age}",
        )
        return CharacterProfile(text=text, name=character.name)

    def _predict(self, capability: str, predictor, **inputs) -> str:
        """Run one predictor under the explicit LM and return its profile text."""
        try:
            if self._lm is not None:
                with dspy.context(lm=self._lm):
                    result = llm_retry(predictor)(**inputs)
            else:
                result = llm_retry(predictor)(**inputs)
        except Exception as e:
            raise GenerationError(capability, str(e) or type(e).__name__) from e

        text = (result.profile or "").strip()
        if not text:
            raise GenerationError(capability, "Profile generator returned no text")
        return text
