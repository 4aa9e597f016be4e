"""
DSPy Module for extracting the supporting cast from a finished story.

The LM is asked for a strict JSON array; the output is validated against a
pydantic schema and anything that does not match is rejected with ParseError.
"""

import logging
import re
from typing import Optional

import dspy
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from storybook.config import llm_retry
from ..errors import GenerationError, ParseError
from ..types import SecondaryCharacter
from ..signatures.character_extractor import CharacterExtractorSignature

logger = logging.getLogger(__name__)

# A single ```json ... ``` wrapper around the whole output
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class ExtractedCharacterPayload(BaseModel):
    """Schema for one element of the extractor's JSON array."""

    model_config = ConfigDict(strict=True)

    name: str = Field(min_length=1)
    role: str
    importance: int = Field(ge=1, le=10)


_PAYLOAD_ADAPTER = TypeAdapter(list[ExtractedCharacterPayload])


def parse_characters(raw_output: str) -> list[SecondaryCharacter]:
    """
    Parse extractor output into SecondaryCharacter objects.

    Args:
        raw_output: The LM output, expected to be a JSON array of
            {"name", "role", "importance"} objects

    Returns:
        Characters in the order the LM returned them

    Raises:
        ParseError: If the output is not valid JSON matching the schema
    """
    text = (raw_output or "").strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        payload = _PAYLOAD_ADAPTER.validate_json(text)
    except ValidationError as e:
        raise ParseError(
            "characters",
            f"Character list did not match the expected schema ({e.error_count()} errors)",
            raw_output=raw_output,
        ) from e

    return [
        SecondaryCharacter(
            name=item.name.strip(),
            role=item.role.strip(),
            importance=item.importance,
        )
        for item in payload
    ]


def rank_characters(
    characters: list[SecondaryCharacter],
    main_character_name: str,
    max_count: Optional[int] = None,
) -> list[SecondaryCharacter]:
    """
    Drop the main character and duplicates, sort by importance, cap the list.

    max_count=None keeps every character.

    Sorting is stable, so characters of equal importance keep story order.
    """
    main_name = main_character_name.strip().lower()
    seen = set()
    unique = []
    for character in characters:
        key = character.name.lower()
        if key == main_name or key in seen:
            continue
        seen.add(key)
        unique.append(character)

    ranked = sorted(unique, key=lambda c: c.importance, reverse=True)
    return ranked[:max_count]


class CharacterExtractor(dspy.Module):
    """
    Find the secondary characters of a completed story.

    Takes the story text and the main character's name and returns the
    supporting cast, most important first. Used to generate visual profiles
    for illustration consistency.

    Args:
        max_characters: Cap on returned characters (None = no cap)
        lm: Explicit LM to use (None = global DSPy LM)
    """

    def __init__(self, max_characters: Optional[int] = None, lm: Optional[dspy.LM] = None):
        super().__init__()
        self.extract = dspy.Predict(CharacterExtractorSignature)
        self.max_characters = max_characters
        self._lm = lm

    def forward(self, story_text: str, main_character_name: str) -> list[SecondaryCharacter]:
        """
        Extract characters from the story.

        Args:
            story_text: The complete story text
            main_character_name: The child's name, excluded from the result

        Returns:
            SecondaryCharacter objects, descending importance

        Raises:
            GenerationError: If the LM call fails
            ParseError: If the LM output is not the expected JSON array
        """
        if self._lm is not None:
            with dspy.context(lm=self._lm):
                return self._extract(story_text, main_character_name)
        return self._extract(story_text, main_character_name)

    def _extract(self, story_text: str, main_character_name: str) -> list[SecondaryCharacter]:
        try:
            result = llm_retry(self.extract)(
                story_text=story_text,
                main_character_name=main_character_name,
            )
        except Exception as e:
            raise GenerationError("characters", str(e) or type(e).__name__) from e

        characters = parse_characters(result.characters_json)
        ranked = rank_characters(characters, main_character_name, self.max_characters)

        logger.debug(
            "Extracted %d characters, kept %d: %s",
            len(characters),
            len(ranked),
            ", ".join(c.name for c in ranked),
        )
        return ranked
