"""
Map exceptions to normalized ErrorCode values and client-facing messages.

HTTP status (on the exception or its ``response``) is checked first, as
raised by the ``openai`` SDK and ``httpx``; message substrings are the
fallback for transport errors that carry no status.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional

import httpx

from .error_code import ErrorCode
from .provider_error import ProviderError


def _extract_status(exc: BaseException) -> Optional[int]:
    """Return an HTTP status from ``exc.status_code``, ``exc.status`` or
    ``exc.response.status_code``; ``None`` when none is valid."""
    for attr in ("status_code", "status"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH,
    403: ErrorCode.AUTH,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.TRANSIENT,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
}

_PATTERN_GROUPS = (
    (ErrorCode.TIMEOUT, ("timeout", "timed out")),
    (ErrorCode.AUTH, ("api key", "api_key", "unauthorized", "forbidden", "auth")),
    (ErrorCode.UNSUPPORTED, ("unsupported", "not supported")),
    (ErrorCode.NOT_FOUND, ("not found", "does not exist")),
    (ErrorCode.CONFLICT, ("conflict", "already exists")),
    (ErrorCode.UNAVAILABLE, ("unavailable", "connection error")),
    (ErrorCode.VALIDATION, ("validation", "invalid", "malformed", "required", "unexpected keyword")),
    (ErrorCode.SERVER_ERROR, ("server error", "internal error")),
)


def _heuristic_from_message(msg: str) -> Optional[ErrorCode]:
    if "rate" in msg and "limit" in msg:
        return ErrorCode.RATE_LIMIT
    for code, patterns in _PATTERN_GROUPS:
        if any(p in msg for p in patterns):
            return code
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify ``exc`` into an :class:`ErrorCode`.

    Precedence: ProviderError passthrough, timeouts, HTTP status mapping,
    transport errors, message heuristics, ``UNKNOWN``.
    """
    if isinstance(exc, ProviderError):
        return exc.code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorCode.TIMEOUT
    status = _extract_status(exc)
    if status is not None and status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    if isinstance(exc, httpx.TransportError):
        return ErrorCode.UNAVAILABLE
    code = _heuristic_from_message(str(exc).lower())
    return code if code is not None else ErrorCode.UNKNOWN


def error_message(exc: BaseException) -> str:
    """Text placed in the error envelope for ``exc``.

    SDK errors expose a cleaner ``message`` attribute than ``str(exc)``; fall
    back to the string form, then to the class name.
    """
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


__all__ = [
    "classify_exception",
    "error_message",
    "_extract_status",
    "_HTTP_STATUS_MAP",
]
