"""Immutable service configuration passed into the app factory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .defaults import (
    LOG_DEFAULT_JSON,
    LOG_DEFAULT_LEVEL,
    OPENAI_PROVIDER,
    SERVICE_DEFAULT_HOST,
    SERVICE_DEFAULT_PORT,
    SERVICE_DEFAULT_ROUTE_PREFIX,
    USE_DEFAULT_KEYS_DEFAULT,
)


@dataclass(frozen=True)
class ServiceSettings:
    """Resolved configuration for one application instance.

    Built by :func:`intelliserver.config.load_settings` and handed to
    ``create_app``; request handlers read it through a dependency instead of
    the process environment.

    Attributes:
        use_default_keys: Allow callers to omit ``api_key`` and fall back to
            ``openai_api_key``.
        openai_api_key: Process-wide default key (never included in ``repr``).
        openai_base_url: Alternative OpenAI-compatible endpoint; ``None`` uses
            the SDK default.
        route_prefix: Prefix for the model routes (``""`` or ``"/openai"``).
        cors_origins: Allowed CORS origins; ``("*",)`` allows all.
        host / port / reload: uvicorn options for the dev server.
        log_level / log_file / log_json: logging setup applied at startup.
    """

    use_default_keys: bool = USE_DEFAULT_KEYS_DEFAULT
    openai_api_key: Optional[str] = field(default=None, repr=False)
    openai_base_url: Optional[str] = None
    route_prefix: str = SERVICE_DEFAULT_ROUTE_PREFIX
    cors_origins: Tuple[str, ...] = ("*",)
    host: str = SERVICE_DEFAULT_HOST
    port: int = SERVICE_DEFAULT_PORT
    reload: bool = False
    log_level: str = LOG_DEFAULT_LEVEL
    log_file: Optional[str] = None
    log_json: bool = LOG_DEFAULT_JSON

    def default_key(self, provider: str = OPENAI_PROVIDER) -> Optional[str]:
        """Return the process-wide key for ``provider`` if one is configured."""
        if provider.lower() == OPENAI_PROVIDER:
            return self.openai_api_key
        return None

    def resolve_api_key(self, supplied: Optional[str], provider: str = OPENAI_PROVIDER) -> Optional[str]:
        """Pick the key for a request.

        The default key is used only when ``use_default_keys`` is on and the
        caller supplied none; otherwise the caller's key (possibly ``None``)
        is returned.
        """
        supplied = (supplied or "").strip() or None
        if self.use_default_keys and supplied is None:
            return self.default_key(provider)
        return supplied


__all__ = ["ServiceSettings"]
