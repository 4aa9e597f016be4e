"""
DSPy Module for writing the personalized story text.

First stage of the pipeline: turns validated quiz answers into prose.
Everything downstream (characters, profiles, pages) is derived from it.
"""

import logging
from typing import Optional

import dspy

from storybook.config import STORY_CONSTANTS, llm_retry
from ..errors import GenerationError
from ..types import QuizInput, CHARACTER_FORM, CORE_MESSAGE
from ..signatures.story_text import StoryTextSignature

logger = logging.getLogger(__name__)


class StoryWriter(dspy.Module):
    """
    Write a complete personalized story from quiz answers.

    Args:
        lm: Explicit LM to use. If None, falls back to the globally
            configured DSPy LM (useful for experiments only).
    """

    def __init__(self, lm: Optional[dspy.LM] = None):
        super().__init__()
        self.generate = dspy.ChainOfThought(StoryTextSignature)
        self._lm = lm

    def _format_main_character(self, quiz: QuizInput) -> str:
        traits = ", ".join(quiz.child_traits) or "no particular traits given"
        return (
            f"Name: {quiz.child_name}\n"
            f"Age: {quiz.child_age}\n"
            f"Personality Traits: {traits}\n"
            f"Character Form: {CHARACTER_FORM}"
        )

    def _format_story_details(self, quiz: QuizInput) -> str:
        lines = [
            f"Story Type: {quiz.story_type.description}",
            f"Tone: {quiz.tone}",
            f"Core Message: {CORE_MESSAGE}",
            f"Themes to Include: {quiz.themes or 'general adventure'}",
            f"Length: {STORY_CONSTANTS['paragraph_count']} paragraphs, "
            f"{STORY_CONSTANTS['sentences_per_paragraph']} sentences each",
            f"Name Mentions: at least {STORY_CONSTANTS['name_mentions_min']}",
        ]
        if quiz.story_description:
            lines.append(f"Story Idea from the parent: {quiz.story_description}")
        return "\n".join(lines)

    def forward(self, quiz: QuizInput) -> str:
        """
        Write the story.

        Args:
            quiz: Validated quiz answers

        Returns:
            Story prose with paragraphs separated by blank lines

        Raises:
            GenerationError: If the LM call fails or returns no text
        """
        if self._lm is not None:
            with dspy.context(lm=self._lm):
                return self._write(quiz)
        return self._write(quiz)

    def _write(self, quiz: QuizInput) -> str:
        try:
            result = llm_retry(self.generate)(
                main_character=self._format_main_character(quiz),
                story_details=self._format_story_details(quiz),
            )
        except Exception as e:
            raise GenerationError("story", str(e) or type(e).__name__) from e

        story = (result.story or "").strip()
        if not story:
            raise GenerationError("story", "Story generator returned no text")

        logger.debug("Story written for %s (%d chars)", quiz.child_name, len(story))
        return story
