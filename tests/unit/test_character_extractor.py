"""Unit tests for supporting-cast extraction."""

import dspy
import pytest

from storybook.core.errors import GenerationError, ParseError
from storybook.core.modules.character_extractor import (
    CharacterExtractor,
    parse_characters,
    rank_characters,
)
from storybook.core.types import SecondaryCharacter


def _char(name: str, importance: int, role: str = "friend") -> SecondaryCharacter:
    return SecondaryCharacter(name=name, role=role, importance=importance)


class TestParseCharacters:
    """Tests for parse_characters()."""

    def test_parses_valid_array(self):
        raw = '[{"name": "Hoot", "role": "wise owl", "importance": 8}, {"name": "Clover", "role": "rabbit", "importance": 6}]'

        characters = parse_characters(raw)

        assert characters == [_char("Hoot", 8, "wise owl"), _char("Clover", 6, "rabbit")]

    def test_accepts_json_code_fence(self):
        raw = '```json\n[{"name": "Hoot", "role": "owl", "importance": 8}]\n```'

        assert parse_characters(raw) == [_char("Hoot", 8, "owl")]

    def test_empty_array_is_valid(self):
        assert parse_characters("[]") == []

    @pytest.mark.parametrize(
        "raw",
        [
            "Hoot the owl and Clover the rabbit",  # prose
            '{"name": "Hoot", "role": "owl", "importance": 8}',  # object, not array
            '[{"name": "Hoot", "role": "owl"}]',  # missing importance
            '[{"name": "Hoot", "role": "owl", "importance": "8"}]',  # string importance
            '[{"name": "Hoot", "role": "owl", "importance": 11}]',  # out of range
            '[{"name": "", "role": "owl", "importance": 5}]',  # empty name
            "",
        ],
    )
    def test_rejects_output_that_does_not_match_schema(self, raw):
        with pytest.raises(ParseError) as exc_info:
            parse_characters(raw)

        assert exc_info.value.capability == "characters"
        assert exc_info.value.raw_output == raw


class TestRankCharacters:
    """Tests for rank_characters()."""

    def test_sorts_by_importance_descending(self):
        ranked = rank_characters([_char("A", 3), _char("B", 9), _char("C", 6)], "Alice")

        assert [c.name for c in ranked] == ["B", "C", "A"]

    def test_equal_importance_keeps_story_order(self):
        ranked = rank_characters([_char("A", 5), _char("B", 5), _char("C", 7)], "Alice")

        assert [c.name for c in ranked] == ["C", "A", "B"]

    def test_drops_main_character_case_insensitively(self):
        ranked = rank_characters([_char("alice", 10), _char("Hoot", 8)], "Alice")

        assert [c.name for c in ranked] == ["Hoot"]

    def test_drops_duplicate_names(self):
        ranked = rank_characters([_char("Hoot", 8), _char("hoot", 4)], "Alice")

        assert len(ranked) == 1
        assert ranked[0].importance == 8

    def test_caps_to_max_count(self):
        ranked = rank_characters([_char(n, i) for n, i in [("A", 1), ("B", 2), ("C", 3), ("D", 4)]], "Alice", 3)

        assert [c.name for c in ranked] == ["D", "C", "B"]

    def test_zero_max_count_keeps_nobody(self):
        assert rank_characters([_char("A", 1)], "Alice", 0) == []


class TestCharacterExtractor:
    """Tests for the CharacterExtractor module with a stubbed predictor."""

    def test_returns_ranked_characters(self):
        extractor = CharacterExtractor(max_characters=2)
        extractor.extract = lambda **kwargs: dspy.Prediction(
            characters_json='[{"name": "Magpie", "role": "bird", "importance": 3},'
            ' {"name": "Alice", "role": "hero", "importance": 10},'
            ' {"name": "Hoot", "role": "owl", "importance": 8},'
            ' {"name": "Clover", "role": "rabbit", "importance": 6}]'
        )

        characters = extractor(story_text="A story.", main_character_name="Alice")

        assert [c.name for c in characters] == ["Hoot", "Clover"]

    def test_passes_story_and_main_character_to_predictor(self):
        seen = {}

        def fake_predict(**kwargs):
            seen.update(kwargs)
            return dspy.Prediction(characters_json="[]")

        extractor = CharacterExtractor()
        extractor.extract = fake_predict

        assert extractor(story_text="Once upon a time.", main_character_name="Alice") == []
        assert seen == {"story_text": "Once upon a time.", "main_character_name": "Alice"}

    def test_malformed_output_raises_parse_error(self):
        extractor = CharacterExtractor()
        extractor.extract = lambda **kwargs: dspy.Prediction(characters_json="not json")

        with pytest.raises(ParseError):
            extractor(story_text="A story.", main_character_name="Alice")

    def test_predictor_failure_raises_generation_error(self):
        def failing(**kwargs):
            raise RuntimeError("provider down")

        extractor = CharacterExtractor()
        extractor.extract = failing

        with pytest.raises(GenerationError) as exc_info:
            extractor(story_text="A story.", main_character_name="Alice")

        assert exc_info.value.capability == "characters"
        assert "provider down" in str(exc_info.value)
