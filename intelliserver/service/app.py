from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from intelliserver import __version__
from intelliserver.base.http import close_all_clients
from intelliserver.base.logging import configure_logger
from intelliserver.config import ServiceSettings, load_settings

from .app_parts.app_core import WrapperFactory, default_wrapper_factory, validation_error_handler
from .openai_routes import router as openai_router


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release pooled upstream connections when the app shuts down."""
    yield
    close_all_clients()


def create_app(
    settings: Optional[ServiceSettings] = None,
    *,
    wrapper_factory: Optional[WrapperFactory] = None,
) -> FastAPI:
    """Build the FastAPI application.

    ``settings`` defaults to :func:`load_settings` (config file, environment,
    ``.env``). ``wrapper_factory`` builds the upstream capability for each
    request from the resolved key; tests pass fakes here.

    Called without arguments it doubles as the uvicorn factory
    (``intelliserver.service.app:create_app --factory``).
    """
    settings = settings or load_settings()
    configure_logger(level=settings.log_level, file_path=settings.log_file, json_mode=settings.log_json)

    app = FastAPI(title="intelliserver", version=__version__, lifespan=_lifespan)
    app.state.settings = settings
    app.state.wrapper_factory = wrapper_factory or default_wrapper_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Liveness check."""
        return {"status": "OK"}

    app.include_router(openai_router, prefix=settings.route_prefix)
    return app


__all__ = ["create_app"]
