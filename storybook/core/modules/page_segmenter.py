"""Split story prose into a fixed number of pages."""

import re

# Paragraphs are separated by a blank line (whitespace-only lines count as blank)
PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")


def split_paragraphs(story_text: str) -> list[str]:
    """Split on blank lines, trim, and drop empty paragraphs."""
    normalized = story_text.replace("\r\n", "\n")
    return [p.strip() for p in PARAGRAPH_BREAK.split(normalized) if p.strip()]


def segment_pages(story_text: str, target_count: int) -> list[str]:
    """
    Turn story text into exactly target_count page texts.

    Extra paragraphs beyond target_count are dropped; missing pages are
    padded with empty strings.

    Raises:
        ValueError: If target_count is less than 1
    """
    if target_count < 1:
        raise ValueError(f"target_count must be at least 1, got {target_count}")

    pages = split_paragraphs(story_text)[:target_count]
    pages.extend("" for _ in range(target_count - len(pages)))
    return pages
