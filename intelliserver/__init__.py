"""intelliserver package

HTTP micro service forwarding chat, text, embedding and image requests to
OpenAI, with incremental SSE reframing for streamed chat.

Public API (re-exported):
    - Version: ``__version__``
    - Exceptions: :class:`ProviderError`, :class:`ErrorCode`
    - Streaming: :class:`GPTStreamParser`, :func:`reframe_stream`
    - Service: :func:`create_app` (imported lazily, pulls in FastAPI)
"""

from .base.errors import ErrorCode, ProviderError
from .base.streaming import GPTStreamParser, reframe_stream

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ProviderError",
    "ErrorCode",
    "GPTStreamParser",
    "reframe_stream",
    "create_app",
]


def create_app(*args, **kwargs):
    """Build the FastAPI application; see :func:`intelliserver.service.app.create_app`."""
    from .service.app import create_app as _create_app

    return _create_app(*args, **kwargs)
