"""Incremental parser for the provider's server-sent-event token stream.

Raw chunks from the upstream transport have no alignment with logical
boundaries: a chunk may end in the middle of a UTF-8 code point, a line, or a
JSON object, and one chunk may carry several events. :class:`GPTStreamParser`
buffers what it is fed and hands back only whole content strings.

Wire format handled::

    data: {"choices": [{"delta": {"content": "Hel"}}]}\\n
    \\n
    data: {"choices": [{"delta": {"content": "lo"}}]}\\n
    \\n
    data: [DONE]\\n

Rules:

- Lines end at ``\\n`` (a preceding ``\\r`` is ignored). Only complete lines
  are examined; the trailing partial line stays in the buffer.
- Only ``data:`` lines matter. ``event:``/``id:``/``retry:`` fields, ``:``
  comments and blank separators carry no content.
- A ``data:`` payload that is not valid JSON yet is kept pending and the next
  ``data:`` payload is joined to it with ``\\n`` (SSE multi-line data). If the
  joined text still fails but the newest payload parses on its own, the stale
  pending text is discarded.
- ``[DONE]`` moves the parser to ``DONE``; it is never emitted and everything
  after it is ignored.
- :meth:`GPTStreamParser.close` flushes the trailing partial line as if it
  were complete; whatever still fails to parse is dropped.

The parser never raises on malformed input and performs no I/O.
"""
from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Iterable, Iterator, List, Optional, Union

from ..logging import LogContext, get_logger, log_event
from .stream_content import ContentExtractor, extract_content
from .stream_state import StreamState

_logger = get_logger("intelliserver.stream")

RawChunk = Union[bytes, bytearray, str]

SENTINEL = "[DONE]"
DATA_FIELD = "data:"

_INCOMPLETE = object()


def _data_payload(line: str) -> Optional[str]:
    """Return the value of a ``data:`` line, or ``None`` for any other line."""
    if not line.startswith(DATA_FIELD):
        return None
    value = line[len(DATA_FIELD):]
    return value[1:] if value.startswith(" ") else value


def _try_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return _INCOMPLETE


class GPTStreamParser:
    """Reframes raw upstream chunks into content fragments.

    One instance per streamed request; not shared between requests.

    Attributes:
        events_parsed: ``data:`` payloads decoded successfully.
        fragments_emitted: content strings handed back to the caller.
        payloads_dropped: pending payloads discarded as unparsable.
    """

    def __init__(
        self,
        content_extractor: ContentExtractor = extract_content,
        ctx: LogContext | None = None,
    ) -> None:
        self._extract = content_extractor
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending: List[str] = []
        self._state = StreamState.ACCUMULATING
        self._ctx = ctx
        self.events_parsed = 0
        self.fragments_emitted = 0
        self.payloads_dropped = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is StreamState.DONE

    def feed(self, raw_chunk: RawChunk) -> Iterator[str]:
        """Consume the next raw chunk and return the fragments it completes.

        The buffer is updated before this returns, so successive calls stay
        ordered even if a returned iterator is never consumed. Yields nothing
        once the parser is ``DONE``.
        """
        if self.done:
            return iter(())
        self._buffer += self._decode(raw_chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return iter(self._consume_lines(lines))

    def close(self) -> Iterator[str]:
        """Signal end of input and flush whatever can still be decoded.

        A trailing remainder that parses is emitted; anything else is dropped
        without error. The parser is ``DONE`` afterwards.
        """
        if self.done:
            return iter(())
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        fragments = self._consume_lines([remainder]) if remainder else []
        if self._pending:
            self._drop_pending(reason="closed")
        self._finish()
        return iter(fragments)

    def _decode(self, raw_chunk: RawChunk) -> str:
        if isinstance(raw_chunk, str):
            return raw_chunk
        return self._decoder.decode(bytes(raw_chunk))

    def _consume_lines(self, lines: Iterable[str]) -> List[str]:
        fragments: List[str] = []
        for line in lines:
            payload = _data_payload(line.rstrip("\r"))
            if payload is None:
                continue
            if payload.strip() == SENTINEL:
                self._pending.clear()
                self._finish()
                break
            content = self._accept(payload)
            if content:
                fragments.append(content)
        self.fragments_emitted += len(fragments)
        return fragments

    def _accept(self, payload: str) -> Optional[str]:
        self._pending.append(payload)
        parsed = _try_json("\n".join(self._pending))
        if parsed is _INCOMPLETE and len(self._pending) > 1:
            parsed = _try_json(payload)
            if parsed is not _INCOMPLETE:
                self._pending.pop()
                self._drop_pending(reason="superseded")
        if parsed is _INCOMPLETE:
            return None
        self._pending.clear()
        self.events_parsed += 1
        content = self._extract(parsed)
        return content if isinstance(content, str) and content else None

    def _drop_pending(self, *, reason: str) -> None:
        self.payloads_dropped += len(self._pending)
        log_event(
            _logger,
            "stream.discard",
            self._ctx,
            level=logging.DEBUG,
            reason=reason,
            payloads=len(self._pending),
            chars=sum(len(p) for p in self._pending),
        )
        self._pending.clear()

    def _finish(self) -> None:
        self._buffer = ""
        self._state = StreamState.DONE


def reframe_stream(chunks: Iterable[RawChunk], parser: GPTStreamParser | None = None) -> Iterator[str]:
    """Run ``chunks`` through a parser and yield every content fragment.

    Stops pulling from ``chunks`` as soon as the sentinel is seen; flushes the
    parser when the source is exhausted.
    """
    parser = parser or GPTStreamParser()
    for chunk in chunks:
        yield from parser.feed(chunk)
        if parser.done:
            return
    yield from parser.close()


__all__ = ["GPTStreamParser", "RawChunk", "SENTINEL", "reframe_stream"]
