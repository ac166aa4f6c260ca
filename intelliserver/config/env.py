"""intelliserver.config.env
========================

Environment variable names and small helpers for reading them.

- ``ENV_MAP`` maps provider identifiers to the variable holding the
  process-wide default key.
- ``SETTINGS_ENV`` maps ``ServiceSettings`` fields to their variables.

Helpers never raise on missing providers or unset variables; callers decide
how to proceed.
"""

from __future__ import annotations

import os
from typing import Dict, Mapping, Optional, Tuple

# Provider -> env var holding the default key
ENV_MAP: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
}

# ServiceSettings field -> env var
SETTINGS_ENV: Dict[str, str] = {
    "use_default_keys": "USE_DEFAULT_KEYS",
    "openai_api_key": "OPENAI_API_KEY",  # pragma: allowlist secret - env var name
    "openai_base_url": "OPENAI_BASE_URL",
    "route_prefix": "INTELLISERVER_ROUTE_PREFIX",
    "cors_origins": "INTELLISERVER_CORS_ORIGINS",
    "host": "INTELLISERVER_HOST",
    "port": "INTELLISERVER_PORT",
    "reload": "INTELLISERVER_RELOAD",
    "log_level": "INTELLISERVER_LOG_LEVEL",
    "log_file": "INTELLISERVER_LOG_FILE",
    "log_json": "INTELLISERVER_LOG_JSON",
}

CONFIG_FILE_ENV = "INTELLISERVER_CONFIG_FILE"
DOTENV_FILE_ENV = "DOTENV_FILE"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if ``val`` looks like a placeholder/test value.

    Heuristics (case-insensitive): contains 'placeholder', 'changeme' or
    'example', or starts with 'test_'.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or v.startswith("test_")
    )


def parse_bool(value: object, default: bool = False) -> bool:
    """Interpret env/config style booleans (``"true"``, ``"1"``, ``"off"`` ...)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return default


def get_env_var_name(provider: str) -> Optional[str]:
    """Return the default-key variable for ``provider`` (case-insensitive)."""
    return ENV_MAP.get(provider.lower()) if provider else None


def resolve_provider_key(
    provider: str, environ: Optional[Mapping[str, str]] = None
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(key, env_var)`` for ``provider`` or ``(None, None)``.

    Empty and placeholder values count as unset.
    """
    env = os.environ if environ is None else environ
    name = get_env_var_name(provider)
    if not name:
        return None, None
    val = (env.get(name) or "").strip()
    if not val or is_placeholder(val):
        return None, None
    return val, name


__all__ = [
    "ENV_MAP",
    "SETTINGS_ENV",
    "CONFIG_FILE_ENV",
    "DOTENV_FILE_ENV",
    "is_placeholder",
    "parse_bool",
    "get_env_var_name",
    "resolve_provider_key",
]
