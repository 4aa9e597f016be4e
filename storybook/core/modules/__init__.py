# Remote generators
from .story_writer import StoryWriter
from .character_extractor import CharacterExtractor, parse_characters, rank_characters
from .character_profiler import CharacterProfiler
from .page_illustrator import PageIllustrator

# Pure helpers
from .design_document import compose_design_document
from .page_segmenter import segment_pages, split_paragraphs
from .illustration_prompt import build_illustration_prompt

__all__ = [
    # Remote generators
    "StoryWriter",
    "CharacterExtractor",
    "parse_characters",
    "rank_characters",
    "CharacterProfiler",
    "PageIllustrator",
    # Pure helpers
    "compose_design_document",
    "segment_pages",
    "split_paragraphs",
    "build_illustration_prompt",
]
