"""Timeout values for upstream calls.

All numeric timeouts used by the HTTP client pool and the OpenAI wrapper come
from :func:`get_timeout_config`; no other module hard-codes one.

Environment overrides (optional, positive floats):
    INTELLISERVER_CONNECT_TIMEOUT_SECONDS
    INTELLISERVER_HTTP_TIMEOUT_SECONDS
    INTELLISERVER_STREAM_TIMEOUT_SECONDS
"""
from __future__ import annotations

import os
from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class TimeoutConfig:
    """Normalized timeout values (seconds).

    Attributes:
        connect_timeout_seconds: Establishing the TCP/TLS connection upstream.
        http_timeout_seconds: Read budget of a non-streaming request (chat,
            text, embeddings, images).
        stream_timeout_seconds: Idle wait for the next raw chunk while
            streaming.
    """

    connect_timeout_seconds: float = 10.0
    http_timeout_seconds: float = 600.0
    stream_timeout_seconds: float = 120.0

    def to_httpx(self) -> httpx.Timeout:
        """Timeout for non-streaming calls and the default of pooled clients.

        Reads may take up to ``http_timeout_seconds``, so a long completion
        is not cut off by the stream idle timeout.
        """
        return httpx.Timeout(self.http_timeout_seconds, connect=self.connect_timeout_seconds)

    def to_httpx_stream(self) -> httpx.Timeout:
        """Timeout for streaming calls: reads wait at most ``stream_timeout_seconds``."""
        return httpx.Timeout(
            self.http_timeout_seconds,
            connect=self.connect_timeout_seconds,
            read=self.stream_timeout_seconds,
        )


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None
_ENV_NAMES = (
    "INTELLISERVER_CONNECT_TIMEOUT_SECONDS",
    "INTELLISERVER_HTTP_TIMEOUT_SECONDS",
    "INTELLISERVER_STREAM_TIMEOUT_SECONDS",
)


def _parse_env_float(name: str, default: float) -> float:
    """Read ``name`` as a positive float, returning ``default`` otherwise."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`.

    The cache is rebuilt when any of the override variables changed since the
    last call, so tests can adjust them with ``monkeypatch.setenv``.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - module cache
    guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and guard == _ENV_GUARD:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        connect_timeout_seconds=_parse_env_float(_ENV_NAMES[0], defaults.connect_timeout_seconds),
        http_timeout_seconds=_parse_env_float(_ENV_NAMES[1], defaults.http_timeout_seconds),
        stream_timeout_seconds=_parse_env_float(_ENV_NAMES[2], defaults.stream_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]
