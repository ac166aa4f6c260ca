"""Shared fixtures for the intelliserver test suite.

Provides a fake upstream (records calls and keys, returns canned bodies or
raw SSE chunks), a TestClient builder bound to it, and log capture on the
``intelliserver`` logger.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from intelliserver.base.http import close_all_clients
from intelliserver.base.logging import BASE_LOGGER_NAME
from intelliserver.config import ServiceSettings
from intelliserver.service.app import create_app


class FakeUpstream:
    """In-memory stand-in for ``OpenAIWrapper``.

    ``result`` is returned by every non-streaming call, ``chunks`` are yielded
    by ``stream_chat_text`` and ``error`` (when set) is raised by every call
    before anything is returned.
    """

    def __init__(self) -> None:
        self.keys: List[Optional[str]] = []
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.result: Dict[str, Any] = {"id": "fake-1", "choices": [{"text": "ok"}]}
        self.chunks: Any = []
        self.error: Optional[Exception] = None
        self.stream_closed = False

    @property
    def provider_name(self) -> str:
        return "openai"

    def factory(self, api_key: Optional[str], settings: ServiceSettings) -> "FakeUpstream":
        self.keys.append(api_key)
        return self

    def _record(self, operation: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        self.calls.append((operation, dict(params)))
        if self.error is not None:
            raise self.error
        return self.result

    def generate_chat_text(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self._record("chat", params)

    @contextmanager
    def stream_chat_text(self, params: Mapping[str, Any]) -> Iterator[Iterator[bytes]]:
        self._record("chat.stream", params)
        try:
            yield iter(self.chunks)
        finally:
            self.stream_closed = True

    def generate_text(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self._record("text", params)

    def get_embeddings(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self._record("embeddings", params)

    def generate_images(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self._record("images", params)


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def make_client(upstream: FakeUpstream) -> Callable[..., TestClient]:
    """Return a builder: ``make_client(**settings_fields) -> TestClient``."""

    def _make(**overrides: Any) -> TestClient:
        settings = ServiceSettings(**overrides)
        return TestClient(create_app(settings, wrapper_factory=upstream.factory))

    return _make


@pytest.fixture()
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


@pytest.fixture()
def log_capture() -> Iterator[List[Dict[str, Any]]]:
    """Collect structured events logged under the ``intelliserver`` logger."""
    events: List[Dict[str, Any]] = []

    def _emit(record: logging.LogRecord) -> None:
        try:
            payload = json.loads(record.getMessage())
        except ValueError:
            payload = {"msg": record.getMessage()}
        if isinstance(payload, dict):
            payload.setdefault("level", record.levelname)
            events.append(payload)

    handler = logging.Handler(level=logging.DEBUG)
    handler.emit = _emit  # type: ignore[method-assign]
    base = logging.getLogger(BASE_LOGGER_NAME)
    previous_level = base.level
    base.addHandler(handler)
    try:
        yield events
    finally:
        base.removeHandler(handler)
        base.setLevel(previous_level)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep host configuration out of the tests and drop pooled clients."""
    for name in (
        "INTELLISERVER_LOG_LEVEL",
        "INTELLISERVER_CONFIG_FILE",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "USE_DEFAULT_KEYS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    close_all_clients()
