"""Structured log helper for pipeline runs."""

import logging
from typing import Optional


class PipelineLogger:
    """Logger for pipeline run events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("story_pipeline")

    def run_started(self, run_id: str, profile: str, page_count: int) -> None:
        self.logger.info(
            "Story pipeline started",
            extra={"run_id": run_id, "stage": "started", "profile": profile, "page_count": page_count},
        )

    def stage_completed(self, run_id: str, stage: str, duration: Optional[float] = None) -> None:
        extra = {"run_id": run_id, "stage": stage}
        if duration:
            extra["duration"] = round(duration, 2)
        self.logger.info(f"Stage completed: {stage}", extra=extra)

    def stage_degraded(self, run_id: str, stage: str, error: Exception, subject: Optional[str] = None) -> None:
        """A best-effort stage (or one item of it) failed and was skipped."""
        extra = {"run_id": run_id, "stage": stage, "error_type": type(error).__name__}
        target = f" for {subject}" if subject else ""
        self.logger.warning(f"Best-effort stage {stage} failed{target}, continuing: {error}", extra=extra)

    def run_completed(
        self,
        run_id: str,
        duration: float,
        profile: str,
        secondary_count: int,
        page_count: int,
    ) -> None:
        self.logger.info(
            f"[{profile}] Story generation complete: {duration:.1f}s "
            f"({secondary_count} secondary characters, {page_count} pages)",
            extra={"run_id": run_id, "stage": "completed", "duration": round(duration, 2)},
        )

    def run_failed(self, run_id: str, error: Exception, stage: str, page: Optional[int] = None) -> None:
        extra = {"run_id": run_id, "stage": "failed", "failed_at_stage": stage, "error_type": type(error).__name__}
        if page is not None:
            extra["page"] = page
        self.logger.error(f"Story pipeline failed: {error}", extra=extra, exc_info=error)


# Global pipeline logger instance
pipeline_logger = PipelineLogger()
