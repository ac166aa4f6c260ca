"""OpenAIWrapper against the real ``openai`` SDK over an ``httpx.MockTransport``."""
from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx
import openai
import pytest
from openai import OpenAI

from intelliserver.base.errors import ErrorCode, ProviderError, classify_exception, error_message
from intelliserver.base.interfaces import UpstreamCapability
from intelliserver.base.streaming import reframe_stream
from intelliserver.openai import OpenAIWrapper

BASE_URL = "https://upstream.test/v1"

SSE_BODY = (
    b'data: {"id":"c1","object":"chat.completion.chunk","created":1,"model":"m","choices":[{"index":0,"delta":{"role":"assistant","content":"Hel"}}]}\n\n'
    b'data: {"id":"c1","object":"chat.completion.chunk","created":1,"model":"m","choices":[{"index":0,"delta":{"content":"lo"}}]}\n\n'
    b"data: [DONE]\n\n"
)

CHAT_BODY = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 1,
    "model": "gpt-4o-mini",
    "choices": [
        {"index": 0, "message": {"role": "assistant", "content": "hi"}, "finish_reason": "stop"}
    ],
}

COMPLETION_BODY = {
    "id": "cmpl-1",
    "object": "text_completion",
    "created": 1,
    "model": "gpt-3.5-turbo-instruct",
    "choices": [{"index": 0, "text": "hello", "finish_reason": "stop", "logprobs": None}],
}

EMBEDDINGS_BODY = {
    "object": "list",
    "model": "text-embedding-3-small",
    "data": [{"object": "embedding", "index": 0, "embedding": [0.1, 0.2]}],
    "usage": {"prompt_tokens": 1, "total_tokens": 1},
}

IMAGES_BODY = {"created": 1, "data": [{"url": "https://img.test/1.png"}]}


class _Recorder:
    """MockTransport handler returning canned bodies per path."""

    def __init__(self, status: int = 200) -> None:
        self.requests: List[Dict[str, Any]] = []
        self.status = status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.requests.append(
            {
                "path": request.url.path,
                "body": body,
                "auth": request.headers.get("authorization"),
                "timeout": request.extensions.get("timeout", {}),
            }
        )
        if self.status != 200:
            return httpx.Response(
                self.status,
                json={"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}},
            )
        path = request.url.path
        if path.endswith("/chat/completions"):
            if body.get("stream"):
                return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=SSE_BODY)
            return httpx.Response(200, json=CHAT_BODY)
        if path.endswith("/completions"):
            return httpx.Response(200, json=COMPLETION_BODY)
        if path.endswith("/embeddings"):
            return httpx.Response(200, json=EMBEDDINGS_BODY)
        if path.endswith("/images/generations"):
            return httpx.Response(200, json=IMAGES_BODY)
        return httpx.Response(404, json={"error": {"message": "not found"}})


def _wrapper(recorder: _Recorder) -> OpenAIWrapper:
    client = OpenAI(
        api_key="sk-test",
        base_url=BASE_URL,
        max_retries=0,
        http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
    )
    return OpenAIWrapper(None, client=client)


def test_wrapper_satisfies_upstream_protocol():
    assert isinstance(_wrapper(_Recorder()), UpstreamCapability)


def test_missing_key_raises_auth_error():
    with pytest.raises(ProviderError) as exc_info:
        OpenAIWrapper(None)
    assert exc_info.value.code is ErrorCode.AUTH


def test_generate_chat_text_forces_non_streaming():
    rec = _Recorder()
    result = _wrapper(rec).generate_chat_text(
        {"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}], "stream": True}
    )
    assert result["choices"][0]["message"]["content"] == "hi"
    assert rec.requests[0]["body"]["stream"] is False
    assert rec.requests[0]["auth"] == "Bearer sk-test"


def test_stream_chat_text_yields_raw_sse_bytes():
    rec = _Recorder()
    params = {"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}]}
    with _wrapper(rec).stream_chat_text(params) as chunks:
        raw = b"".join(chunks)
    assert raw == SSE_BODY
    assert rec.requests[0]["body"]["stream"] is True
    assert "stream" not in params


def test_streamed_bytes_reframe_to_content():
    with _wrapper(_Recorder()).stream_chat_text({"model": "m", "messages": []}) as chunks:
        assert list(reframe_stream(chunks)) == ["Hel", "lo"]


def test_stream_chat_text_raises_on_entry_for_http_errors():
    wrapper = _wrapper(_Recorder(status=401))
    with pytest.raises(openai.AuthenticationError) as exc_info:
        with wrapper.stream_chat_text({"model": "m", "messages": []}):
            pytest.fail("context should not be entered")
    assert classify_exception(exc_info.value) is ErrorCode.AUTH
    assert "Incorrect API key provided" in error_message(exc_info.value)


def test_generate_text_returns_body():
    rec = _Recorder()
    result = _wrapper(rec).generate_text({"model": "gpt-3.5-turbo-instruct", "prompt": "Say hello"})
    assert result == COMPLETION_BODY
    assert rec.requests[0]["path"] == "/v1/completions"
    assert rec.requests[0]["body"]["prompt"] == "Say hello"


def test_get_embeddings_returns_body():
    rec = _Recorder()
    result = _wrapper(rec).get_embeddings(
        {"model": "text-embedding-3-small", "input": "hello", "encoding_format": "float"}
    )
    assert result["data"][0]["embedding"] == [0.1, 0.2]
    assert rec.requests[0]["path"] == "/v1/embeddings"


def test_generate_images_returns_body():
    rec = _Recorder()
    result = _wrapper(rec).generate_images({"prompt": "a red fox", "n": 1, "size": "256x256"})
    assert result == IMAGES_BODY
    assert rec.requests[0]["path"] == "/v1/images/generations"


def test_http_error_on_non_streaming_call_is_classified():
    with pytest.raises(openai.APIStatusError) as exc_info:
        _wrapper(_Recorder(status=429)).generate_text({"model": "m", "prompt": "x"})
    assert classify_exception(exc_info.value) is ErrorCode.RATE_LIMIT


def _pooled_style_wrapper(recorder: _Recorder) -> OpenAIWrapper:
    transport = httpx.Client(transport=httpx.MockTransport(recorder), timeout=httpx.Timeout(5.0))
    return OpenAIWrapper("sk-test", base_url=BASE_URL, http_client=transport)


def test_sdk_client_uses_request_timeout_not_transport_default():
    wrapper = OpenAIWrapper("sk-test", base_url=BASE_URL)
    assert wrapper._client.timeout.read == 600.0
    assert wrapper._client.timeout.connect == 10.0


def test_non_streaming_call_reads_with_request_timeout():
    rec = _Recorder()
    _pooled_style_wrapper(rec).generate_text({"model": "m", "prompt": "x"})
    assert rec.requests[0]["timeout"]["read"] == 600.0
    assert rec.requests[0]["timeout"]["connect"] == 10.0


def test_streaming_call_reads_with_stream_idle_timeout(monkeypatch):
    monkeypatch.setenv("INTELLISERVER_STREAM_TIMEOUT_SECONDS", "45")
    rec = _Recorder()
    with _pooled_style_wrapper(rec).stream_chat_text({"model": "m", "messages": []}) as chunks:
        assert list(reframe_stream(chunks)) == ["Hel", "lo"]
    assert rec.requests[0]["timeout"]["read"] == 45.0
    assert "timeout" not in rec.requests[0]["body"]
