"""
Main program for generating a personalized illustrated storybook.

Pipeline (one run per quiz submission):
1. story               - write the story text (required)
2. characters          - extract the supporting cast (best-effort)
3. profiles-main       - profile the child for visual consistency (required)
4. profiles-secondary  - profile each supporting character in parallel (best-effort)
5. images              - one illustration per page through a bounded pool (required)

Progress is reported on a sink as each stage starts and as each image lands.
run() returns the finished story or raises PipelineError; stream() yields
the same events as an async iterator ending in one complete/error event.
"""

import asyncio
import logging
import time
import uuid
from typing import AsyncIterator, Optional, Protocol

from storybook.config import (
    PipelineSettings,
    TextOptions,
    ImageOptions,
    get_inference_lm,
    is_demo_mode,
)
from ..errors import PipelineError, describe_cause
from ..progress import (
    ProgressEvent,
    ProgressSink,
    CallbackSink,
    CompleteEvent,
    ErrorEvent,
    StoryPayload,
    progress_event,
    safe_emit,
    is_terminal,
)
from ..run_logger import PipelineLogger, pipeline_logger
from ..types import (
    QuizInput,
    SecondaryCharacter,
    CharacterProfile,
    Page,
    GeneratedStory,
    Outcome,
)
from ..worker_pool import map_bounded
from ..modules.story_writer import StoryWriter
from ..modules.character_extractor import CharacterExtractor, rank_characters
from ..modules.character_profiler import CharacterProfiler
from ..modules.page_illustrator import PageIllustrator
from ..modules.demo import (
    DemoStoryWriter,
    DemoCharacterExtractor,
    DemoCharacterProfiler,
    DemoIllustrator,
)
from ..modules.design_document import compose_design_document
from ..modules.page_segmenter import segment_pages
from ..modules.illustration_prompt import build_illustration_prompt

logger = logging.getLogger(__name__)


class Illustrator(Protocol):
    """Anything that turns a prompt into a base64 image."""

    async def generate(self, prompt: str, size: Optional[str] = None) -> str: ...


class StoryPipeline:
    """
    Orchestrates the generators into one storybook run.

    The text generators are synchronous (DSPy) and are run in worker threads
    so the event loop stays free to deliver progress; the illustrator is
    async and fanned out through map_bounded().

    Args:
        writer: Callable quiz -> story text
        extractor: Callable (story_text, main_character_name) -> characters
        profiler: Object with main_profile() and secondary_profile()
        illustrator: Object with async generate(prompt, size)
        settings: Page count, cast size and image concurrency
        logger: Structured run logger
    """

    def __init__(
        self,
        writer,
        extractor,
        profiler,
        illustrator: Illustrator,
        settings: Optional[PipelineSettings] = None,
        logger: Optional[PipelineLogger] = None,
    ):
        self.writer = writer
        self.extractor = extractor
        self.profiler = profiler
        self.illustrator = illustrator
        self.settings = settings or PipelineSettings()
        self.logger = logger or pipeline_logger

    async def run(self, quiz: QuizInput, sink: Optional[ProgressSink] = None) -> GeneratedStory:
        """
        Generate a complete storybook.

        Args:
            quiz: Validated quiz answers
            sink: Optional progress sink; receives every progress event and
                the terminal complete/error event

        Returns:
            GeneratedStory with exactly settings.target_page_count pages

        Raises:
            PipelineError: If a required stage fails, or the run fails
                unexpectedly. str() is safe to show to the customer.
        """
        run_id = uuid.uuid4().hex[:8]
        start_time = time.time()
        stage = "story"

        try:
            self.logger.run_started(run_id, self.settings.profile_name, self.settings.target_page_count)

            # Step 1: Story text
            safe_emit(sink, progress_event("story", f"Writing {quiz.child_name}'s personalized adventure..."))
            story_text = await self._write_story(quiz)
            self.logger.stage_completed(run_id, stage, time.time() - start_time)
            stage_start = time.time()

            # Step 2: Supporting cast (best-effort)
            stage = "characters"
            safe_emit(sink, progress_event("characters", "Meeting the characters..."))
            extracted = await self._extract_characters(story_text, quiz)
            if extracted.ok:
                characters = extracted.value
                self.logger.stage_completed(run_id, stage, time.time() - stage_start)
            else:
                characters = []
                self.logger.stage_degraded(run_id, stage, extracted.error)

            # Step 3: Main character profile
            stage = "profiles-main"
            stage_start = time.time()
            safe_emit(sink, progress_event("profiles-main", f"Designing {quiz.child_name}..."))
            main_profile = await self._profile_main(quiz)
            self.logger.stage_completed(run_id, stage, time.time() - stage_start)
            stage_start = time.time()

            # Step 4: Supporting cast profiles, in parallel (best-effort per character)
            stage = "profiles-secondary"
            safe_emit(
                sink,
                progress_event(
                    "profiles-secondary",
                    f"Creating supporting cast ({len(characters)} characters)...",
                ),
            )
            outcomes = await asyncio.gather(
                *(self._profile_secondary(c, story_text, quiz) for c in characters)
            )
            secondary_profiles = []
            for character, outcome in zip(characters, outcomes):
                if outcome.ok:
                    secondary_profiles.append(outcome.value)
                else:
                    self.logger.stage_degraded(run_id, stage, outcome.error, subject=character.name)
            self.logger.stage_completed(run_id, stage, time.time() - stage_start)

            design_document = compose_design_document(main_profile, secondary_profiles)
            page_texts = segment_pages(story_text, self.settings.target_page_count)

            # Step 5: Illustrations
            stage = "images"
            stage_start = time.time()
            images = await self._illustrate(page_texts, design_document, quiz, sink)
            self.logger.stage_completed(run_id, stage, time.time() - stage_start)

            stage = "complete"
            story = GeneratedStory(
                story_text=story_text,
                pages=[Page(text=text, image_base64=image) for text, image in zip(page_texts, images)],
                design_document=design_document,
                secondary_characters=characters,
                elapsed_seconds=time.time() - start_time,
            )
            payload = StoryPayload.from_story(story)
            self.logger.run_completed(
                run_id,
                story.elapsed_seconds,
                self.settings.profile_name,
                len(characters),
                story.page_count,
            )

        except PipelineError as e:
            safe_emit(sink, ErrorEvent(error=str(e)))
            self.logger.run_failed(run_id, e, e.stage, e.page)
            raise
        except Exception as e:
            safe_emit(sink, ErrorEvent(error="Failed to generate story"))
            self.logger.run_failed(run_id, e, stage)
            raise PipelineError(stage, "Failed to generate story") from e

        safe_emit(sink, CompleteEvent(data=payload))
        return story

    async def stream(self, quiz: QuizInput) -> AsyncIterator[ProgressEvent]:
        """
        Run the pipeline and yield its events as they happen.

        The iterator always ends with exactly one complete or error event,
        including when the run dies without reporting one. Closing it early
        cancels the run.
        """
        queue: asyncio.Queue = asyncio.Queue()
        task = asyncio.create_task(self._run_reporting(quiz, CallbackSink(queue.put_nowait)))
        get = None

        try:
            while True:
                if task.done():
                    if queue.empty():
                        yield self._unreported_failure(task)
                        return
                    event = queue.get_nowait()
                else:
                    get = asyncio.ensure_future(queue.get())
                    done, _ = await asyncio.wait({get, task}, return_when=asyncio.FIRST_COMPLETED)
                    if get not in done:
                        get.cancel()
                        continue
                    event = get.result()

                yield event
                if is_terminal(event):
                    break
            await task
        finally:
            if get is not None and not get.done():
                get.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

    async def _run_reporting(self, quiz: QuizInput, sink: ProgressSink) -> None:
        """run() for stream(): failures are delivered as the terminal error event."""
        try:
            await self.run(quiz, sink)
        except PipelineError:
            pass

    def _unreported_failure(self, task: asyncio.Task) -> ErrorEvent:
        """Terminal event for a run that finished without emitting one."""
        error = None if task.cancelled() else task.exception()
        logger.error("Story run ended without a terminal event", exc_info=error)
        return ErrorEvent(error="Failed to generate story")

    # =========================================================================
    # Stages
    # =========================================================================

    async def _write_story(self, quiz: QuizInput) -> str:
        try:
            return await asyncio.to_thread(self.writer, quiz)
        except Exception as e:
            raise PipelineError("story", f"Story generation failed: {describe_cause(e)}") from e

    async def _extract_characters(self, story_text: str, quiz: QuizInput) -> Outcome[list[SecondaryCharacter]]:
        try:
            characters = await asyncio.to_thread(self.extractor, story_text, quiz.child_name)
        except Exception as e:
            return Outcome.failure(e)

        return Outcome.success(
            rank_characters(characters, quiz.child_name, self.settings.max_secondary_characters)
        )

    async def _profile_main(self, quiz: QuizInput) -> CharacterProfile:
        try:
            return await asyncio.to_thread(self.profiler.main_profile, quiz)
        except Exception as e:
            raise PipelineError(
                "profiles-main", f"Character profile generation failed: {describe_cause(e)}"
            ) from e

    async def _profile_secondary(
        self,
        character: SecondaryCharacter,
        story_text: str,
        quiz: QuizInput,
    ) -> Outcome[CharacterProfile]:
        try:
            profile = await asyncio.to_thread(
                self.profiler.secondary_profile,
                character,
                story_text,
                quiz.child_name,
                quiz.child_age,
            )
        except Exception as e:
            return Outcome.failure(e)
        return Outcome.success(profile)

    async def _illustrate(
        self,
        page_texts: list[str],
        design_document: str,
        quiz: QuizInput,
        sink: Optional[ProgressSink],
    ) -> list[str]:
        """Illustrate every page; the first failure cancels the rest."""
        prompts = [build_illustration_prompt(design_document, text, quiz) for text in page_texts]
        total = len(prompts)

        safe_emit(sink, progress_event("images", "Generating illustrations...", 0, total))

        def on_complete(completed: int, of: int) -> None:
            safe_emit(sink, progress_event("images", "Generating illustrations...", completed, of))

        return await map_bounded(
            self._illustrate_page,
            prompts,
            self.settings.image_concurrency,
            on_complete=on_complete,
        )

    async def _illustrate_page(self, index: int, prompt: str) -> str:
        try:
            return await self.illustrator.generate(prompt, size=self.settings.image_size)
        except Exception as e:
            page = index + 1
            raise PipelineError(
                "images",
                f"Image generation failed on page {page}: {describe_cause(e)}",
                page=page,
            ) from e


def build_pipeline(
    settings: Optional[PipelineSettings] = None,
    text_options: Optional[TextOptions] = None,
    image_options: Optional[ImageOptions] = None,
    demo: Optional[bool] = None,
) -> StoryPipeline:
    """
    Build a StoryPipeline wired to real or demo generators.

    Args:
        settings: Pipeline settings (default: from environment)
        text_options: Text model options (default: from environment)
        image_options: Image model options (default: from environment)
        demo: Force demo generators on/off (default: is_demo_mode())
    """
    settings = settings or PipelineSettings.from_env()
    if demo is None:
        demo = is_demo_mode()

    if demo:
        return StoryPipeline(
            writer=DemoStoryWriter(),
            extractor=DemoCharacterExtractor(),
            profiler=DemoCharacterProfiler(),
            illustrator=DemoIllustrator(),
            settings=settings,
        )

    lm = get_inference_lm(text_options or TextOptions.from_env())
    return StoryPipeline(
        writer=StoryWriter(lm=lm),
        extractor=CharacterExtractor(lm=lm),
        profiler=CharacterProfiler(lm=lm),
        illustrator=PageIllustrator(options=image_options or ImageOptions.from_env()),
        settings=settings,
    )
