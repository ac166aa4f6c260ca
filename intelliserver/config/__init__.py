"""Unified configuration layer for the service.

Sources are merged in a predictable order (later wins):
    1. Built-in defaults (``ServiceSettings`` field defaults)
    2. Optional config file (JSON or YAML) pointed to by INTELLISERVER_CONFIG_FILE
    3. Environment variables (see ``env.SETTINGS_ENV``), after a ``.env`` file
       has filled in unset or placeholder variables
    4. In-code overrides passed to :func:`load_settings`

Config file example (YAML)::

    use_default_keys: true
    route_prefix: /openai
    cors_origins: ["http://localhost:5173"]
    log_level: DEBUG

Public API
----------
* load_settings(overrides: dict | None = None, environ: Mapping | None = None) -> ServiceSettings
* ServiceSettings
"""
from __future__ import annotations

import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

import yaml

from .env import (
    CONFIG_FILE_ENV,
    DOTENV_FILE_ENV,
    SETTINGS_ENV,
    is_placeholder,
    parse_bool,
    resolve_provider_key,
)
from .defaults import OPENAI_PROVIDER
from .settings import ServiceSettings

_BOOL_FIELDS = frozenset({"use_default_keys", "reload", "log_json"})
_INT_FIELDS = frozenset({"port"})


def load_dotenv(path: Optional[str] = None, environ: Optional[MutableMapping[str, str]] = None) -> None:
    """Minimal ``.env`` loader.

    Parses ``KEY=VALUE`` lines, ignoring comments and blank lines. A variable
    is only written when it is unset or currently holds a placeholder.
    """
    env = os.environ if environ is None else environ
    path = path or env.get(DOTENV_FILE_ENV, ".env")
    if not os.path.isfile(path):
        return
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            k = k.strip()
            v = v.strip().strip('"').strip("'")
            if k and (k not in env or is_placeholder(env.get(k))):
                env[k] = v


def _load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Read the optional config file; JSON first, then YAML.

    A missing path, a missing file, or a document that is not a mapping yields
    an empty dict. A file that is neither valid JSON nor valid YAML raises.
    """
    if not path:
        return {}
    p = Path(path)
    if not p.is_file():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


def _env_values(environ: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for field_name, var in SETTINGS_ENV.items():
        val = environ.get(var)
        if val is None:
            continue
        if field_name == "openai_api_key":
            val, _ = resolve_provider_key(OPENAI_PROVIDER, environ)
            if val is None:
                continue
        out[field_name] = val
    return out


def _split_origins(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(v) for v in value or ()]
    origins = tuple(o.strip() for o in items if o.strip())
    return origins or ("*",)


def _normalize_prefix(value: Any) -> str:
    prefix = str(value or "").strip().rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


def _coerce(raw: Dict[str, Any], base: ServiceSettings) -> Dict[str, Any]:
    """Convert merged raw values to the field types of ``ServiceSettings``."""
    out: Dict[str, Any] = {}
    for name, value in raw.items():
        if name in _BOOL_FIELDS:
            out[name] = parse_bool(value, default=getattr(base, name))
        elif name in _INT_FIELDS:
            try:
                out[name] = int(value)
            except (TypeError, ValueError):
                out[name] = getattr(base, name)
        elif name == "cors_origins":
            out[name] = _split_origins(value)
        elif name == "route_prefix":
            out[name] = _normalize_prefix(value)
        elif name == "log_level":
            out[name] = str(value).strip().upper() or base.log_level
        else:
            out[name] = value if value not in ("", None) else None
    return out


def load_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[MutableMapping[str, str]] = None,
    *,
    use_dotenv: bool = True,
) -> ServiceSettings:
    """Return merged :class:`ServiceSettings`.

    Merge order (later wins): defaults -> config file -> env vars -> overrides.
    ``environ`` defaults to ``os.environ``; pass a dict in tests to keep the
    process environment untouched. Unknown keys in the file or overrides are
    ignored.
    """
    env = os.environ if environ is None else environ
    if use_dotenv:
        load_dotenv(environ=env)

    known = {f.name for f in fields(ServiceSettings)}
    raw: Dict[str, Any] = {}
    raw |= {k: v for k, v in _load_config_file(env.get(CONFIG_FILE_ENV)).items() if k in known}
    raw |= _env_values(env)
    if overrides:
        raw |= {k: v for k, v in overrides.items() if k in known and v is not None}

    base = ServiceSettings()
    return ServiceSettings(**_coerce(raw, base))


__all__ = [
    "ServiceSettings",
    "load_settings",
    "load_dotenv",
]
