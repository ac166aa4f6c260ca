"""
Base package

Provider-agnostic building blocks shared by the upstream wrapper and the HTTP
service:
- Streaming: SSE stream parser (reframer) and client-side SSE framing
- Errors: normalized error taxonomy and classification
- Logging: structured JSON logging
- HTTP: pooled httpx clients and timeout configuration
"""

from .errors import ErrorCode, ProviderError, classify_exception, error_message
from .logging import LogContext, configure_logger, get_logger, log_event, normalized_log_event
from .streaming import GPTStreamParser, StreamState, format_sse_event, reframe_stream
from .timeouts import TimeoutConfig, get_timeout_config

__all__ = [
    "ErrorCode",
    "ProviderError",
    "classify_exception",
    "error_message",
    "LogContext",
    "configure_logger",
    "get_logger",
    "log_event",
    "normalized_log_event",
    "GPTStreamParser",
    "StreamState",
    "format_sse_event",
    "reframe_stream",
    "TimeoutConfig",
    "get_timeout_config",
]
