"""Build the per-page illustration prompt."""

from ..types import QuizInput


def fallback_scene(quiz: QuizInput) -> str:
    """Scene description for padding pages that have no story text."""
    return f"A {quiz.tone} scene featuring {quiz.child_name}"


def build_illustration_prompt(design_document: str, page_text: str, quiz: QuizInput) -> str:
    """
    Compose the prompt for one page: character reference, scene, art direction.

    Args:
        design_document: Composed character design document
        page_text: The page's paragraph (may be empty)
        quiz: Quiz answers, for tone and themes

    Returns:
        Prompt string for the image generator
    """
    scene = page_text.strip() or fallback_scene(quiz)
    themes = quiz.themes or "general adventure"

    return f"""{design_document}

SCENE FOR THIS PAGE:
{scene}

ARTISTIC DIRECTION:
- Style: Children's book illustration, {quiz.tone} tone ({quiz.story_type.description})
- Composition: Focus on the characters present in this scene
- Themes present: {themes}
- CRITICAL: Maintain exact character consistency from reference above
- No text or words in the image"""
