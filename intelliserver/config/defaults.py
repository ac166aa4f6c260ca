"""intelliserver.config.defaults
=============================

Small, stable default values for the service. They can be overridden through
the config file, environment variables or in-code overrides (see
``intelliserver.config``); this module only holds plain constants and performs
no I/O.
"""

from __future__ import annotations

# ---- Service / HTTP layer ----

SERVICE_DEFAULT_HOST = "127.0.0.1"
SERVICE_DEFAULT_PORT = 3000
# Prefix the model routes are mounted under ("" keeps /chat, /text ...).
SERVICE_DEFAULT_ROUTE_PREFIX = ""
SERVICE_ACTIVE_MESSAGE = "OpenAI Micro Service is active!"

# ---- Keys ----

# When enabled, callers may omit api_key and the process-wide key is used.
USE_DEFAULT_KEYS_DEFAULT = False

# ---- Provider ----

OPENAI_PROVIDER = "openai"

# ---- Logging ----

LOG_DEFAULT_LEVEL = "INFO"
LOG_DEFAULT_JSON = True


__all__ = [
    "SERVICE_DEFAULT_HOST",
    "SERVICE_DEFAULT_PORT",
    "SERVICE_DEFAULT_ROUTE_PREFIX",
    "SERVICE_ACTIVE_MESSAGE",
    "USE_DEFAULT_KEYS_DEFAULT",
    "OPENAI_PROVIDER",
    "LOG_DEFAULT_LEVEL",
    "LOG_DEFAULT_JSON",
]
