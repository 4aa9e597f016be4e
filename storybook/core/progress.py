"""
Progress events emitted by the story pipeline.

Events are transport-agnostic pydantic models. On the wire they serialize
to camelCase JSON, e.g.

    {"type": "progress", "stage": "images", "message": "...", "step": 5,
     "totalSteps": 5, "progress": {"current": 3, "total": 10}}

A stream ends with exactly one "complete" or "error" event.
"""

import logging
from typing import Annotated, Callable, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .types import GeneratedStory

logger = logging.getLogger(__name__)

# Stage ids in pipeline order, with their step number
STAGES = {
    "story": 1,
    "characters": 2,
    "profiles-main": 3,
    "profiles-secondary": 4,
    "images": 5,
}
TOTAL_STEPS = len(STAGES)


class _WireModel(BaseModel):
    """Base for wire models: camelCase aliases, construct by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SubProgress(_WireModel):
    """Fan-out progress inside a stage (images completed so far)."""

    current: int
    total: int


class PagePayload(_WireModel):
    text: str
    image_base64: Optional[str] = None


class StoryPayload(_WireModel):
    """Final payload of a successful run."""

    story_text: str
    pages: list[PagePayload]
    design_document: str

    @classmethod
    def from_story(cls, story: GeneratedStory) -> "StoryPayload":
        return cls(
            story_text=story.story_text,
            pages=[PagePayload(text=p.text, image_base64=p.image_base64) for p in story.pages],
            design_document=story.design_document,
        )


class ProgressUpdate(_WireModel):
    type: Literal["progress"] = "progress"
    stage: str
    message: str
    step: int
    total_steps: int = TOTAL_STEPS
    progress: Optional[SubProgress] = None


class CompleteEvent(_WireModel):
    type: Literal["complete"] = "complete"
    data: StoryPayload


class ErrorEvent(_WireModel):
    type: Literal["error"] = "error"
    error: str


ProgressEvent = Annotated[
    Union[ProgressUpdate, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]

_EVENT_ADAPTER = TypeAdapter(ProgressEvent)


def parse_event(data: Union[str, bytes, dict]) -> ProgressEvent:
    """Parse a wire event (JSON text or dict) back into its model."""
    if isinstance(data, dict):
        return _EVENT_ADAPTER.validate_python(data)
    return _EVENT_ADAPTER.validate_json(data)


def is_terminal(event: ProgressEvent) -> bool:
    return event.type in ("complete", "error")


def progress_event(stage: str, message: str, current: Optional[int] = None, total: Optional[int] = None) -> ProgressUpdate:
    """Build a progress event for a stage id."""
    sub = SubProgress(current=current, total=total) if total is not None else None
    return ProgressUpdate(stage=stage, message=message, step=STAGES[stage], progress=sub)


class ProgressSink(Protocol):
    """Anything that accepts progress events. emit() must be cheap and non-blocking."""

    def emit(self, event: ProgressEvent) -> None: ...


class CallbackSink:
    """Adapt a plain callable into a ProgressSink."""

    def __init__(self, callback: Callable[[ProgressEvent], None]):
        self.callback = callback

    def emit(self, event: ProgressEvent) -> None:
        self.callback(event)


class CollectingSink:
    """Keep every event in memory, for callers that inspect the run afterwards."""

    def __init__(self):
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def terminal(self) -> Optional[ProgressEvent]:
        terminal = [e for e in self.events if is_terminal(e)]
        return terminal[-1] if terminal else None


def safe_emit(sink: Optional[ProgressSink], event: ProgressEvent) -> None:
    """
    Deliver an event without letting a broken sink affect the pipeline.

    Progress updates are non-critical; sink failures are logged and dropped.
    """
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception as e:
        logger.warning(f"Progress sink failed on {event.type} event: {e}")
