"""Services for story generation."""

from .progress_stream import SSE_HEADERS, format_sse, sse_events

__all__ = ["SSE_HEADERS", "format_sse", "sse_events"]
