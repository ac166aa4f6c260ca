"""Lifecycle states of a stream parser."""

from __future__ import annotations

from enum import Enum


class StreamState(str, Enum):
    """``ACCUMULATING`` until the sentinel is seen or the source closes, then ``DONE``.

    ``DONE`` is terminal.
    """

    ACCUMULATING = "accumulating"
    DONE = "done"


__all__ = ["StreamState"]
