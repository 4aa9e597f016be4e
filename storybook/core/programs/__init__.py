from .story_pipeline import StoryPipeline, build_pipeline

__all__ = ["StoryPipeline", "build_pipeline"]
