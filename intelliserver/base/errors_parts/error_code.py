"""
Normalized error codes.

Values are lowercase snake_case and appear as ``error_code`` in structured
logs; treat them as a stable contract.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Failure categories for request handling and upstream calls."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    TRANSIENT = "transient"
    UNSUPPORTED = "unsupported"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]
