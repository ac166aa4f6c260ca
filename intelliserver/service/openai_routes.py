"""OpenAI model routes.

Every handler follows the same shape: validate ``params``, resolve the key,
build the upstream wrapper, forward, and wrap the result in
``{"status": "OK", "data": ...}``. Any exception is converted to
``{"status": "ERROR", "message": ...}`` with the default 200 status.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Union

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from intelliserver.base.interfaces import UpstreamCapability
from intelliserver.base.logging import LogContext, get_logger, normalized_log_event
from intelliserver.config import ServiceSettings
from intelliserver.config.defaults import OPENAI_PROVIDER, SERVICE_ACTIVE_MESSAGE

from .app_parts.app_core import (
    ModelRequestBody,
    WrapperFactory,
    build_wrapper,
    error_envelope,
    get_request_id_dep,
    get_settings_dep,
    get_wrapper_factory_dep,
    ok_envelope,
    require_params,
)
from .chat_stream import open_chat_stream

router = APIRouter(tags=["Models"])

_logger = get_logger("intelliserver.service")


def _start(operation: str, body: ModelRequestBody, request_id: str) -> LogContext:
    params = body.params or {}
    ctx = LogContext(
        provider=OPENAI_PROVIDER,
        model=params.get("model") if isinstance(params.get("model"), str) else None,
        operation=operation,
        request_id=request_id,
    )
    normalized_log_event(_logger, "request.start", ctx, phase="start", stream=bool(params.get("stream")) or None)
    return ctx


def _forward(
    operation: str,
    call: Callable[[UpstreamCapability, Mapping[str, Any]], Any],
    body: ModelRequestBody,
    settings: ServiceSettings,
    factory: WrapperFactory,
    request_id: str,
) -> Dict[str, Any]:
    """Shared request/response path for the synchronous routes."""
    ctx = _start(operation, body, request_id)
    try:
        params = require_params(body, operation)
        wrapper = build_wrapper(body, settings, factory, operation)
        result = call(wrapper, params)
        usage = result.get("usage") if isinstance(result, dict) else None
        return ok_envelope(result, ctx, usage)
    except Exception as exc:
        return error_envelope(exc, ctx)


@router.get("/", summary="Report that the OpenAI service is active.")
def get_status() -> Dict[str, Any]:
    return {"status": "OK", "message": SERVICE_ACTIVE_MESSAGE}


@router.post("/chat", response_model=None, summary="Generate a chat completion, optionally streamed as server-sent events.")
def post_chat(
    body: ModelRequestBody,
    settings: ServiceSettings = Depends(get_settings_dep),
    factory: WrapperFactory = Depends(get_wrapper_factory_dep),
    request_id: str = Depends(get_request_id_dep),
) -> Union[Dict[str, Any], StreamingResponse]:
    """Chat with OpenAI models.

    ``params`` carries ``model``, ``messages``, and optionally ``stream``,
    ``max_tokens`` and ``temperature``. With ``stream`` set the response is
    ``text/event-stream`` with one ``data:`` event per content fragment;
    otherwise ``data.response`` holds the completion ``choices``.
    """
    ctx = _start("chat", body, request_id)
    try:
        params = require_params(body, "chat")
        wrapper = build_wrapper(body, settings, factory, "chat")
        if params.get("stream"):
            return open_chat_stream(wrapper, params, ctx)
        result = wrapper.generate_chat_text(params)
        return ok_envelope({"response": result.get("choices")}, ctx, result.get("usage"))
    except Exception as exc:
        return error_envelope(exc, ctx)


@router.post("/text", summary="Generate text with a completion model.")
def post_text(
    body: ModelRequestBody,
    settings: ServiceSettings = Depends(get_settings_dep),
    factory: WrapperFactory = Depends(get_wrapper_factory_dep),
    request_id: str = Depends(get_request_id_dep),
) -> Dict[str, Any]:
    return _forward("text", lambda w, p: w.generate_text(p), body, settings, factory, request_id)


@router.post("/embeddings", summary="Generate embeddings for the given input.")
def post_embeddings(
    body: ModelRequestBody,
    settings: ServiceSettings = Depends(get_settings_dep),
    factory: WrapperFactory = Depends(get_wrapper_factory_dep),
    request_id: str = Depends(get_request_id_dep),
) -> Dict[str, Any]:
    return _forward("embeddings", lambda w, p: w.get_embeddings(p), body, settings, factory, request_id)


@router.post("/images", summary="Generate images from a prompt.")
def post_images(
    body: ModelRequestBody,
    settings: ServiceSettings = Depends(get_settings_dep),
    factory: WrapperFactory = Depends(get_wrapper_factory_dep),
    request_id: str = Depends(get_request_id_dep),
) -> Dict[str, Any]:
    return _forward("images", lambda w, p: w.generate_images(p), body, settings, factory, request_id)


__all__ = ["router"]
