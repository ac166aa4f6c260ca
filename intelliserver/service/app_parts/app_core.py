from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from intelliserver.base.errors import ErrorCode, ProviderError, classify_exception, error_message
from intelliserver.base.interfaces import UpstreamCapability
from intelliserver.base.logging import LogContext, get_logger, normalized_log_event
from intelliserver.config import ServiceSettings
from intelliserver.config.defaults import OPENAI_PROVIDER
from intelliserver.openai import create_openai_wrapper

WrapperFactory = Callable[[Optional[str], ServiceSettings], UpstreamCapability]

_logger = get_logger("intelliserver.service")


class ModelRequestBody(BaseModel):
    """Body shared by every model route.

    ``params`` is forwarded to the upstream call unchanged; its keys depend on
    the route (``model``/``messages``/``stream`` for chat, ``prompt`` for
    text and images, ``input`` for embeddings). It is optional at the schema
    level so that a missing value is reported through the error envelope
    rather than a 422.
    """

    model_config = ConfigDict(extra="allow")

    api_key: Optional[str] = None
    params: Optional[Dict[str, Any]] = None


def default_wrapper_factory(api_key: Optional[str], settings: ServiceSettings) -> UpstreamCapability:
    """Build the OpenAI wrapper for one request."""
    return create_openai_wrapper(api_key, base_url=settings.openai_base_url)


def get_settings_dep(request: Request) -> ServiceSettings:
    """FastAPI dependency returning the settings the app was built with."""
    return request.app.state.settings


def get_wrapper_factory_dep(request: Request) -> WrapperFactory:
    """FastAPI dependency returning the upstream wrapper factory."""
    return request.app.state.wrapper_factory


def get_request_id_dep(request: Request) -> str:
    """Propagate ``X-Request-ID`` when the caller sends one."""
    return request.headers.get("X-Request-ID") or uuid.uuid4().hex


def require_params(body: ModelRequestBody, operation: str) -> Dict[str, Any]:
    """Return ``body.params`` or raise a validation ``ProviderError``."""
    if body.params is None:
        raise ProviderError(
            code=ErrorCode.VALIDATION,
            message="params is required",
            operation=operation,
        )
    return body.params


def build_wrapper(
    body: ModelRequestBody,
    settings: ServiceSettings,
    factory: WrapperFactory,
    operation: str,
) -> UpstreamCapability:
    """Resolve the key for this request and build the upstream wrapper.

    The default key applies only when ``use_default_keys`` is enabled and the
    caller sent none; a request left without any key fails here.
    """
    api_key = settings.resolve_api_key(body.api_key, OPENAI_PROVIDER)
    if not api_key:
        raise ProviderError(
            code=ErrorCode.AUTH,
            message="api_key is required",
            operation=operation,
        )
    return factory(api_key, settings)


def ok_envelope(data: Any, ctx: LogContext, usage: Any = None) -> Dict[str, Any]:
    """Log success, with the upstream token ``usage`` when there is one, and wrap ``data``."""
    normalized_log_event(_logger, "request.ok", ctx, phase="finalize", emitted=True, tokens=usage or None)
    return {"status": "OK", "data": data}


def error_envelope(exc: Exception, ctx: LogContext) -> Dict[str, Any]:
    """Log ``exc`` with its normalized code and convert it to the error body."""
    code = classify_exception(exc)
    normalized_log_event(
        _logger,
        "request.error",
        ctx,
        phase="finalize",
        error_code=code.value,
        emitted=False,
        level=logging.WARNING,
        failure_class=type(exc).__name__,
    )
    return {"status": "ERROR", "message": error_message(exc)}


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request body"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies through the error envelope (status stays 200)."""
    ctx = LogContext(
        provider=OPENAI_PROVIDER,
        operation=request.url.path.rstrip("/").rsplit("/", 1)[-1] or None,
        request_id=get_request_id_dep(request),
    )
    message = _describe_validation_errors(exc)
    return JSONResponse(error_envelope(ProviderError(code=ErrorCode.VALIDATION, message=message), ctx))


__all__ = [
    "ModelRequestBody",
    "WrapperFactory",
    "default_wrapper_factory",
    "get_settings_dep",
    "get_wrapper_factory_dep",
    "get_request_id_dep",
    "require_params",
    "build_wrapper",
    "ok_envelope",
    "error_envelope",
    "validation_error_handler",
]
