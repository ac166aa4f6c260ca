"""
Structured error raised by the request-handling path.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode


@dataclass
class ProviderError(Exception):
    """A request or upstream failure tagged with a normalized code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification.
        message: Human-readable message; this is what clients see in the
            ``{"status": "ERROR", "message": ...}`` envelope.
        provider: Upstream provider key (e.g. ``"openai"``).
        operation: Capability being forwarded (``chat``, ``text`` ...).
        raw: Original exception, kept for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: str = "openai"
    operation: Optional[str] = None
    raw: Optional[Exception] = None

    def __str__(self) -> str:
        return self.message


__all__ = ["ProviderError"]
