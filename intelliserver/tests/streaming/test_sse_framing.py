from __future__ import annotations

from intelliserver.base.streaming import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    format_sse_event,
    iter_sse_events,
)


def test_single_line_fragment():
    assert format_sse_event("Hello") == "data: Hello\n\n"


def test_leading_space_is_preserved():
    assert format_sse_event(" world") == "data:  world\n\n"


def test_multi_line_fragment_uses_one_data_line_per_line():
    assert format_sse_event("a\nb") == "data: a\ndata: b\n\n"
    assert format_sse_event("end\n") == "data: end\ndata: \n\n"


def test_carriage_returns_become_separate_data_lines():
    assert format_sse_event("a\rb") == "data: a\ndata: b\n\n"
    assert format_sse_event("a\r\nb") == "data: a\ndata: b\n\n"
    assert "\r" not in format_sse_event("x\r")


def test_iter_sse_events_encodes_utf8():
    assert list(iter_sse_events(["é", "x"])) == ["data: é\n\n".encode("utf-8"), b"data: x\n\n"]


def test_sse_response_metadata():
    assert SSE_MEDIA_TYPE == "text/event-stream"
    assert SSE_HEADERS["Cache-Control"] == "no-cache"
    assert SSE_HEADERS["Connection"] == "keep-alive"
