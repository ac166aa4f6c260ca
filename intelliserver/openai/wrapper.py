"""OpenAI upstream wrapper built on the official ``openai`` SDK.

Each method forwards caller ``params`` unchanged to the matching SDK call and
returns the response body as a plain dict (``to_dict()`` keeps only the
fields the API actually sent, so the result mirrors the upstream JSON).

Streaming does not use the SDK's parsed ``Stream`` iterator: the raw SSE bytes
are exposed instead (``with_streaming_response``) and reframed by
``GPTStreamParser`` in the service layer.

Transport: the SDK is handed a pooled ``httpx.Client`` from
``intelliserver.base.http`` so wrappers created per request share connections.
The SDK client uses ``TimeoutConfig.to_httpx()`` whatever timeout the borrowed
client carries; streaming calls override the read timeout per request with
the stream idle timeout.
Retries are whatever the SDK applies by default; none are added here.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

import httpx
from openai import OpenAI

from ..base.errors import ErrorCode, ProviderError
from ..base.http import get_httpx_client
from ..base.timeouts import get_timeout_config
from ..config.defaults import OPENAI_PROVIDER

__all__ = ["OpenAIWrapper", "create_openai_wrapper"]


class OpenAIWrapper:
    """Forward chat, text, embedding and image requests to OpenAI.

    Args:
        api_key: Key for this request. Required unless ``client`` is given.
        base_url: OpenAI-compatible endpoint; ``None`` uses the SDK default.
        http_client: Transport for the SDK; defaults to the pooled client for
            ``base_url``.
        client: Pre-built SDK client (takes precedence over the other args).

    Raises:
        ProviderError: ``AUTH`` when no key and no client are supplied.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        client: Optional[OpenAI] = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ProviderError(
                    code=ErrorCode.AUTH,
                    message="api_key is required",
                    provider=OPENAI_PROVIDER,
                )
            client = OpenAI(
                api_key=api_key,
                base_url=base_url,
                http_client=http_client or get_httpx_client(base_url, purpose=OPENAI_PROVIDER),
                timeout=get_timeout_config().to_httpx(),
            )
        self._client = client

    @property
    def provider_name(self) -> str:
        return OPENAI_PROVIDER

    def generate_chat_text(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Run a non-streaming chat completion and return the full body."""
        body = {**params, "stream": False}
        return self._client.chat.completions.create(**body).to_dict()

    @contextmanager
    def stream_chat_text(self, params: Mapping[str, Any]) -> Iterator[Iterator[bytes]]:
        """Start a streaming chat completion and yield its raw SSE byte chunks.

        The upstream request is sent when the context is entered; HTTP errors
        (bad key, unknown model, rate limit) raise there. The connection is
        released when the context exits, including on early exit. Reads time
        out after the stream idle timeout rather than the request timeout.
        """
        body = {**params, "stream": True, "timeout": get_timeout_config().to_httpx_stream()}
        with self._client.chat.completions.with_streaming_response.create(**body) as response:
            yield response.iter_bytes()

    def generate_text(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Run a legacy text completion and return the full body."""
        return self._client.completions.create(**params).to_dict()

    def get_embeddings(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Create embeddings for ``params["input"]`` and return the full body."""
        return self._client.embeddings.create(**params).to_dict()

    def generate_images(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Generate images from ``params["prompt"]`` and return the full body."""
        return self._client.images.generate(**params).to_dict()


def create_openai_wrapper(api_key: Optional[str], base_url: Optional[str] = None) -> OpenAIWrapper:
    """Default wrapper factory used by the service."""
    return OpenAIWrapper(api_key, base_url=base_url)
