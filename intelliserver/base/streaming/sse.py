"""Client-side framing of content fragments as server-sent events."""

from __future__ import annotations

from typing import Iterable, Iterator

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def format_sse_event(content: str) -> str:
    """Frame one fragment as ``data: <content>\\n\\n``.

    Content spanning several lines becomes one ``data:`` line per line, which
    SSE clients join back with ``\\n``. ``\\r\\n`` and a lone ``\\r`` are line
    breaks in SSE as well, so both are split on and come back as ``\\n``.
    """
    lines = content.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "".join(f"data: {line}\n" for line in lines) + "\n"


def iter_sse_events(fragments: Iterable[str]) -> Iterator[bytes]:
    """Encode each fragment as a UTF-8 SSE event."""
    for fragment in fragments:
        yield format_sse_event(fragment).encode("utf-8")


__all__ = ["SSE_MEDIA_TYPE", "SSE_HEADERS", "format_sse_event", "iter_sse_events"]
