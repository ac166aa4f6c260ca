"""Shared HTTP client pool for upstream calls.

A new ``OpenAIWrapper`` is built per request because the API key can differ
per caller; the wrappers borrow ``httpx.Client`` instances from this pool so
connections to the provider are reused across requests.

Clients are keyed by ``(base_url, purpose)``. Timeouts derive from
:func:`get_timeout_config` when a client is created. The application closes
the pool on shutdown; an ``atexit`` hook covers scripts and tests.
"""

from __future__ import annotations

import atexit
import contextlib
import threading
from typing import Dict, NamedTuple, Optional

import httpx

from ..timeouts import get_timeout_config


class PoolKey(NamedTuple):
    base_url: Optional[str]
    purpose: str


_POOL: Dict[PoolKey, httpx.Client] = {}
_POOL_LOCK = threading.RLock()


def _new_client(base_url: Optional[str]) -> httpx.Client:
    kwargs = {"timeout": get_timeout_config().to_httpx()}
    if base_url:
        kwargs["base_url"] = base_url
    return httpx.Client(**kwargs)


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.Client:
    """Return the open pooled client for ``(base_url, purpose)``.

    A client that was closed elsewhere is replaced. Safe to call from the
    request threadpool.
    """
    key = PoolKey(base_url, purpose)
    with _POOL_LOCK:
        pooled = _POOL.get(key)
        if pooled is None or pooled.is_closed:
            pooled = _POOL[key] = _new_client(base_url)
        return pooled


def close_all_clients() -> None:
    """Close every pooled client and empty the pool."""
    with _POOL_LOCK:
        clients = list(_POOL.values())
        _POOL.clear()
    for pooled in clients:
        with contextlib.suppress(Exception):  # nosec B110 - shutdown path
            pooled.close()


atexit.register(close_all_clients)

__all__ = ["PoolKey", "get_httpx_client", "close_all_clients"]
