"""UpstreamCapability Protocol (single-class module).

Describes the generation surface the HTTP routes forward to, so the OpenAI
wrapper can be swapped for another upstream (or a fake in tests) through the
app factory.
"""

from __future__ import annotations

from typing import Any, ContextManager, Dict, Iterator, Mapping, Protocol, runtime_checkable


@runtime_checkable
class UpstreamCapability(Protocol):
    """Opaque generation provider.

    Non-streaming calls return the provider's JSON body as a dict. The
    streaming call returns a context manager: entering it starts the upstream
    request (so failures surface before any byte is written to the client) and
    yields the raw SSE byte chunks; leaving it releases the connection.
    """

    @property
    def provider_name(self) -> str:
        ...

    def generate_chat_text(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def stream_chat_text(self, params: Mapping[str, Any]) -> ContextManager[Iterator[bytes]]:
        ...

    def generate_text(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def get_embeddings(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def generate_images(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        ...


__all__ = ["UpstreamCapability"]
