"""Streaming package.

Incremental SSE parsing of upstream token streams (``GPTStreamParser``) and
client-side SSE framing under one namespace.
"""

from .stream_state import StreamState
from .stream_content import ContentExtractor, extract_content
from .stream_parser import GPTStreamParser, RawChunk, SENTINEL, reframe_stream
from .sse import SSE_HEADERS, SSE_MEDIA_TYPE, format_sse_event, iter_sse_events

__all__ = [
    "StreamState",
    "ContentExtractor",
    "extract_content",
    "GPTStreamParser",
    "RawChunk",
    "SENTINEL",
    "reframe_stream",
    "SSE_HEADERS",
    "SSE_MEDIA_TYPE",
    "format_sse_event",
    "iter_sse_events",
]
