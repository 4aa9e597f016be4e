"""Unit tests for the StoryPipeline orchestrator with fake generators."""

import asyncio
import re

import pytest

from storybook.config import PipelineSettings
from storybook.core.errors import GenerationError, ParseError, PipelineError
from storybook.core.modules.design_document import SECONDARY_HEADER
from storybook.core.run_logger import PipelineLogger
from storybook.core.progress import (
    CollectingSink,
    CompleteEvent,
    ErrorEvent,
    ProgressUpdate,
    is_terminal,
)
from storybook.core.types import SecondaryCharacter
from tests.unit.fakes import (
    FakeExtractor,
    FakeIllustrator,
    FakeProfiler,
    FakeWriter,
    make_story,
)


def _page_of(prompt: str) -> int:
    """Page number from a prompt built from make_story() text ("[p03]" -> 3)."""
    match = re.search(r"\[p(\d+)\]", prompt)
    return int(match.group(1)) if match else 0


def _staggered(prompt: str) -> float:
    """Later pages finish sooner, so completion order differs from page order."""
    return 0.002 * (12 - _page_of(prompt))


def _progress(events):
    return [e for e in events if isinstance(e, ProgressUpdate)]


def _terminal(events):
    return [e for e in events if is_terminal(e)]


class TestEndToEnd:
    """The Alice scenario: 10 pages, concurrency 4."""

    @pytest.mark.asyncio
    async def test_full_run(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator(delay=_staggered)
        pipeline = make_pipeline(illustrator=illustrator)
        sink = CollectingSink()

        story = await pipeline.run(alice_quiz, sink)

        # Stage order 1..5
        steps = [e.step for e in _progress(sink.events)]
        assert steps == sorted(steps)
        assert sorted(set(steps)) == [1, 2, 3, 4, 5]

        # Image sub-progress never goes backwards and ends at N/N
        image_counts = [e.progress.current for e in _progress(sink.events) if e.stage == "images"]
        assert image_counts == sorted(image_counts)
        assert image_counts[0] == 0
        assert image_counts[-1] == 10
        assert image_counts == list(range(11))

        # Exactly one terminal event, and it is complete
        terminal = _terminal(sink.events)
        assert len(terminal) == 1
        assert isinstance(terminal[0], CompleteEvent)
        assert sink.events[-1] is terminal[0]
        assert len(terminal[0].data.pages) == 10

        # Results are in page order even though completion order was reversed
        assert story.page_count == 10
        assert story.pages[0].text.startswith("[p01]")
        assert story.pages[9].text.startswith("[p10]")
        assert illustrator.high_water <= 4
        assert story.illustrated_count == 10

    @pytest.mark.asyncio
    async def test_image_prompts_match_pages(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator()
        story = await make_pipeline(illustrator=illustrator).run(alice_quiz)

        for prompt in illustrator.prompts:
            assert prompt.startswith(story.design_document)
        assert sorted(_page_of(p) for p in illustrator.prompts) == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_design_document_includes_secondary_profiles(self, make_pipeline, alice_quiz):
        story = await make_pipeline().run(alice_quiz)

        assert story.design_document.startswith("MAIN PROFILE: Alice")
        assert SECONDARY_HEADER in story.design_document
        assert story.design_document.index("Hoot:") < story.design_document.index("Clover:")

    @pytest.mark.asyncio
    async def test_progress_messages(self, make_pipeline, alice_quiz):
        sink = CollectingSink()
        await make_pipeline().run(alice_quiz, sink)

        messages = {e.stage: e.message for e in _progress(sink.events)}
        assert messages["story"] == "Writing Alice's personalized adventure..."
        assert messages["characters"] == "Meeting the characters..."
        assert messages["profiles-main"] == "Designing Alice..."
        assert messages["profiles-secondary"] == "Creating supporting cast (2 characters)..."
        assert messages["images"] == "Generating illustrations..."
        assert all(e.total_steps == 5 for e in _progress(sink.events))


class TestPageCount:
    """The page sequence always has exactly the target length."""

    @pytest.mark.asyncio
    async def test_short_story_is_padded(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator()
        pipeline = make_pipeline(writer=FakeWriter(make_story(4)), illustrator=illustrator)

        story = await pipeline.run(alice_quiz)

        assert story.page_count == 10
        assert [p.is_blank for p in story.pages] == [False] * 4 + [True] * 6
        # Blank pages are still illustrated, from the fallback scene
        assert story.illustrated_count == 10
        fallback = [p for p in illustrator.prompts if "scene featuring Alice" in p]
        assert len(fallback) == 6

    @pytest.mark.asyncio
    async def test_long_story_is_truncated(self, make_pipeline, alice_quiz):
        story = await make_pipeline(writer=FakeWriter(make_story(14))).run(alice_quiz)

        assert story.page_count == 10
        assert "[p14]" in story.story_text
        assert not any("[p11]" in p.text for p in story.pages)

    @pytest.mark.asyncio
    async def test_fast_profile(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator()
        extractor = FakeExtractor(
            [
                SecondaryCharacter("Hoot", "owl", 8),
                SecondaryCharacter("Clover", "rabbit", 6),
                SecondaryCharacter("Magpie", "bird", 3),
            ]
        )
        pipeline = make_pipeline(
            settings=PipelineSettings.fast(),
            extractor=extractor,
            illustrator=illustrator,
        )

        story = await pipeline.run(alice_quiz)

        assert story.page_count == 5
        assert [c.name for c in story.secondary_characters] == ["Hoot", "Clover"]
        assert len(illustrator.prompts) == 5


class TestCharacterStages:
    """Best-effort character extraction and secondary profiles."""

    @pytest.mark.asyncio
    async def test_extraction_failure_continues_without_cast(self, make_pipeline, alice_quiz):
        profiler = FakeProfiler()
        sink = CollectingSink()
        pipeline = make_pipeline(
            extractor=FakeExtractor(error=ParseError("characters", "bad JSON")),
            profiler=profiler,
        )

        story = await pipeline.run(alice_quiz, sink)

        assert story.secondary_characters == []
        assert SECONDARY_HEADER not in story.design_document
        assert profiler.secondary_calls == []
        assert isinstance(sink.terminal, CompleteEvent)
        # Step 4 is still reported
        assert any(e.stage == "profiles-secondary" for e in _progress(sink.events))

    @pytest.mark.asyncio
    async def test_secondary_profile_failure_is_isolated(self, make_pipeline, alice_quiz):
        pipeline = make_pipeline(profiler=FakeProfiler(fail_for=("Hoot",)))

        story = await pipeline.run(alice_quiz)

        assert "Clover: drawn in soft pastels" in story.design_document
        assert "Hoot" not in story.design_document
        assert story.page_count == 10

    @pytest.mark.asyncio
    async def test_one_of_three_secondary_profiles_failing(self, make_pipeline, alice_quiz):
        extractor = FakeExtractor(
            [
                SecondaryCharacter("Hoot", "owl", 8),
                SecondaryCharacter("Clover", "rabbit", 6),
                SecondaryCharacter("Fox", "fox", 5),
            ]
        )
        profiler = FakeProfiler(fail_for=("Clover",))

        story = await make_pipeline(extractor=extractor, profiler=profiler).run(alice_quiz)

        assert sorted(profiler.secondary_calls) == ["Clover", "Fox", "Hoot"]
        secondary = story.design_document.split(SECONDARY_HEADER, 1)[1]
        assert "Hoot: drawn in soft pastels" in secondary
        assert "Fox: drawn in soft pastels" in secondary
        assert "Clover" not in story.design_document
        assert secondary.index("Hoot:") < secondary.index("Fox:")

    @pytest.mark.asyncio
    async def test_all_secondary_profiles_failing_is_not_fatal(self, make_pipeline, alice_quiz):
        pipeline = make_pipeline(profiler=FakeProfiler(fail_for=("Hoot", "Clover")))

        story = await pipeline.run(alice_quiz)

        assert SECONDARY_HEADER not in story.design_document

    @pytest.mark.asyncio
    async def test_cast_is_ranked_capped_and_excludes_child(self, make_pipeline, alice_quiz):
        extractor = FakeExtractor(
            [
                SecondaryCharacter("Magpie", "bird", 3),
                SecondaryCharacter("Alice", "hero", 10),
                SecondaryCharacter("Hoot", "owl", 8),
                SecondaryCharacter("Fox", "fox", 5),
                SecondaryCharacter("Clover", "rabbit", 6),
            ]
        )
        profiler = FakeProfiler()

        story = await make_pipeline(extractor=extractor, profiler=profiler).run(alice_quiz)

        assert [c.name for c in story.secondary_characters] == ["Hoot", "Clover", "Fox"]
        assert sorted(profiler.secondary_calls) == ["Clover", "Fox", "Hoot"]

    @pytest.mark.asyncio
    async def test_no_characters_skips_profiling(self, make_pipeline, alice_quiz):
        profiler = FakeProfiler()
        sink = CollectingSink()

        story = await make_pipeline(extractor=FakeExtractor([]), profiler=profiler).run(alice_quiz, sink)

        assert profiler.secondary_calls == []
        assert story.page_count == 10
        messages = [e.message for e in _progress(sink.events) if e.stage == "profiles-secondary"]
        assert messages == ["Creating supporting cast (0 characters)..."]


class TestRequiredStageFailures:
    """Required stages end the run with one customer-safe error."""

    @pytest.mark.asyncio
    async def test_story_failure(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator()
        sink = CollectingSink()
        pipeline = make_pipeline(
            writer=FakeWriter(error=GenerationError("story", "provider down")),
            illustrator=illustrator,
        )

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run(alice_quiz, sink)

        assert str(exc_info.value) == "Story generation failed: provider down"
        assert exc_info.value.stage == "story"
        assert isinstance(exc_info.value.__cause__, GenerationError)
        assert illustrator.prompts == []
        assert [e.stage for e in _progress(sink.events)] == ["story"]
        assert _terminal(sink.events) == [ErrorEvent(error="Story generation failed: provider down")]

    @pytest.mark.asyncio
    async def test_main_profile_failure(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator()
        pipeline = make_pipeline(
            profiler=FakeProfiler(main_error=RuntimeError("rate limited")),
            illustrator=illustrator,
        )

        with pytest.raises(PipelineError, match="^Character profile generation failed: rate limited$") as exc_info:
            await pipeline.run(alice_quiz)

        assert exc_info.value.stage == "profiles-main"
        assert illustrator.prompts == []

    @pytest.mark.asyncio
    async def test_image_failure_names_page_and_cancels_siblings(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator(
            delay=lambda p: 0.01 if _page_of(p) == 3 else 0.5,
            fail_when=lambda p: _page_of(p) == 3,
            error=GenerationError("image", "model overloaded"),
        )
        sink = CollectingSink()
        pipeline = make_pipeline(illustrator=illustrator)

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run(alice_quiz, sink)

        assert str(exc_info.value) == "Image generation failed on page 3: model overloaded"
        assert exc_info.value.stage == "images"
        assert exc_info.value.page == 3
        # Siblings in flight were abandoned, the rest never started
        assert illustrator.cancelled >= 1
        assert illustrator.finished == 0
        assert illustrator.in_flight == 0
        assert len(illustrator.prompts) < 10

        terminal = _terminal(sink.events)
        assert len(terminal) == 1
        assert isinstance(terminal[0], ErrorEvent)
        assert terminal[0].error == "Image generation failed on page 3: model overloaded"

    @pytest.mark.asyncio
    async def test_error_message_has_no_internals(self, make_pipeline, alice_quiz):
        pipeline = make_pipeline(writer=FakeWriter(error=RuntimeError("")))

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run(alice_quiz)

        assert str(exc_info.value) == "Story generation failed: RuntimeError"
        assert "Traceback" not in str(exc_info.value)


class TestProgressSink:
    """Sink failures never affect the run."""

    @pytest.mark.asyncio
    async def test_broken_sink_does_not_fail_run(self, make_pipeline, alice_quiz):
        class BrokenSink:
            def emit(self, event):
                raise BrokenPipeError("client disconnected")

        story = await make_pipeline().run(alice_quiz, BrokenSink())

        assert story.page_count == 10

    @pytest.mark.asyncio
    async def test_run_without_sink(self, make_pipeline, alice_quiz):
        story = await make_pipeline().run(alice_quiz)

        assert story.page_count == 10


class TestStreaming:
    """stream() yields the same events as run(), ending in one terminal event."""

    @pytest.mark.asyncio
    async def test_stream_ends_with_complete(self, make_pipeline, alice_quiz):
        events = [e async for e in make_pipeline().stream(alice_quiz)]

        assert isinstance(events[-1], CompleteEvent)
        assert len(_terminal(events)) == 1
        assert events[0].stage == "story"

    @pytest.mark.asyncio
    async def test_stream_ends_with_error(self, make_pipeline, alice_quiz):
        pipeline = make_pipeline(writer=FakeWriter(error=RuntimeError("boom")))

        events = [e async for e in pipeline.stream(alice_quiz)]

        assert len(_terminal(events)) == 1
        assert events[-1] == ErrorEvent(error="Story generation failed: boom")

    @pytest.mark.asyncio
    async def test_streaming_and_non_streaming_payloads_match(self, make_pipeline, alice_quiz):
        pipeline = make_pipeline()
        sink = CollectingSink()

        await pipeline.run(alice_quiz, sink)
        streamed = [e async for e in pipeline.stream(alice_quiz)]

        run_payload = sink.terminal.data.to_wire()
        stream_payload = streamed[-1].data.to_wire()
        assert run_payload["storyText"] == stream_payload["storyText"]
        assert run_payload["designDocument"] == stream_payload["designDocument"]
        assert [p["text"] for p in run_payload["pages"]] == [p["text"] for p in stream_payload["pages"]]
        assert all(p.get("imageBase64") for p in stream_payload["pages"])

    @pytest.mark.asyncio
    async def test_closing_stream_early_cancels_run(self, make_pipeline, alice_quiz):
        illustrator = FakeIllustrator(delay=0.5)
        stream = make_pipeline(illustrator=illustrator).stream(alice_quiz)

        async for event in stream:
            if event.stage == "images" and event.progress.current == 0:
                break
        await stream.aclose()
        await asyncio.sleep(0)

        assert illustrator.finished == 0
        assert illustrator.in_flight == 0

    @pytest.mark.asyncio
    async def test_failure_while_assembling_ends_stream_with_error(self, make_pipeline, alice_quiz):
        class BrokenSummaryLogger(PipelineLogger):
            def run_completed(self, *args, **kwargs):
                raise RuntimeError("log handler closed")

        pipeline = make_pipeline(logger=BrokenSummaryLogger())

        async def consume():
            return [e async for e in pipeline.stream(alice_quiz)]

        events = await asyncio.wait_for(consume(), timeout=2)

        assert _terminal(events) == [ErrorEvent(error="Failed to generate story")]
        assert events[-1].type == "error"

    @pytest.mark.asyncio
    async def test_invalid_image_output_is_a_pipeline_error(self, make_pipeline, alice_quiz):
        class NumberIllustrator(FakeIllustrator):
            async def generate(self, prompt, size=None):
                await super().generate(prompt, size)
                return 123

        sink = CollectingSink()
        pipeline = make_pipeline(illustrator=NumberIllustrator())

        with pytest.raises(PipelineError, match="^Failed to generate story$") as exc_info:
            await pipeline.run(alice_quiz, sink)

        assert exc_info.value.stage == "complete"
        assert _terminal(sink.events) == [ErrorEvent(error="Failed to generate story")]

    @pytest.mark.asyncio
    async def test_run_dying_without_terminal_event_still_ends_stream(
        self, make_pipeline, alice_quiz, monkeypatch
    ):
        pipeline = make_pipeline()

        async def dies_silently(quiz, sink=None):
            sink.emit(ProgressUpdate(stage="story", message="Writing...", step=1))
            raise RuntimeError("event loop policy changed")

        monkeypatch.setattr(pipeline, "run", dies_silently)

        events = await asyncio.wait_for(
            _collect(pipeline.stream(alice_quiz)),
            timeout=2,
        )

        assert [e.type for e in events] == ["progress", "error"]
        assert events[-1].error == "Failed to generate story"


async def _collect(stream):
    return [e async for e in stream]
