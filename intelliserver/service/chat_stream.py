"""
Server-sent-event streaming for ``POST /chat`` with ``stream: true``.

Purpose
-------
Open the upstream streaming completion, reframe its raw SSE bytes with
``GPTStreamParser`` and write one ``data: <content>\\n\\n`` event per content
fragment to the client.

Failure semantics
-----------------
- The upstream request is started before the ``StreamingResponse`` is built,
  so auth/model/rate-limit failures propagate to the route and become the
  regular ``{"status": "ERROR"}`` envelope.
- Once bytes are flowing the status line is already sent. A failure while
  reading upstream is logged (``stream.error``) and the stream simply ends.
- Client disconnects close the generator; the upstream connection is released
  in the same ``finally`` path.
"""
from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Iterator, Mapping

from fastapi.responses import StreamingResponse

from intelliserver.base.errors import classify_exception
from intelliserver.base.interfaces import UpstreamCapability
from intelliserver.base.logging import LogContext, get_logger, normalized_log_event
from intelliserver.base.streaming import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    GPTStreamParser,
    iter_sse_events,
    reframe_stream,
)

_logger = get_logger("intelliserver.service.stream")


def open_chat_stream(
    wrapper: UpstreamCapability,
    params: Mapping[str, Any],
    ctx: LogContext,
) -> StreamingResponse:
    """Start the upstream stream and return the SSE response relaying it.

    Everything that can fail before the response exists runs either before
    the upstream is opened or under a guard that closes it again.
    """
    normalized_log_event(_logger, "stream.start", ctx, phase="start", emitted=False)
    parser = GPTStreamParser(ctx=ctx)

    with ExitStack() as stack:
        chunks = stack.enter_context(wrapper.stream_chat_text(params))
        upstream = stack.pop_all()

    try:
        return StreamingResponse(
            _relay(upstream, chunks, parser, ctx), media_type=SSE_MEDIA_TYPE, headers=dict(SSE_HEADERS)
        )
    except BaseException:
        upstream.close()
        raise


def _relay(upstream: ExitStack, chunks: Iterator[bytes], parser: GPTStreamParser, ctx: LogContext) -> Iterator[bytes]:
    """Relay fragments as SSE events until the upstream is exhausted."""
    error_code = None
    with upstream:
        try:
            yield from iter_sse_events(reframe_stream(chunks, parser))
        except Exception as exc:
            error_code = classify_exception(exc).value
            normalized_log_event(
                _logger,
                "stream.error",
                ctx,
                phase="stream",
                error_code=error_code,
                emitted=parser.fragments_emitted > 0,
                level=logging.ERROR,
                failure_class=type(exc).__name__,
                message=str(exc),
            )
        finally:
            normalized_log_event(
                _logger,
                "stream.finalize",
                ctx,
                phase="finalize",
                error_code=error_code,
                emitted=parser.fragments_emitted > 0,
                fragments=parser.fragments_emitted,
                events=parser.events_parsed,
                dropped=parser.payloads_dropped,
                state=parser.state.value,
            )


__all__ = ["open_chat_stream"]
