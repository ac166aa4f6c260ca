"""Content extraction from decoded stream payloads.

Supported payload shapes, first match wins:

- chat completion chunk: ``{"choices": [{"delta": {"content": "..."}}]}``
- text completion chunk: ``{"choices": [{"text": "..."}]}``
- bare text frame: ``{"text": "..."}``

Anything else (role-only deltas, finish frames, usage frames, error frames)
carries no content.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

ContentExtractor = Callable[[Any], Optional[str]]


def _non_empty(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def extract_content(payload: Any) -> Optional[str]:
    """Return the text carried by ``payload`` or ``None``."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        first = choices[0]
        delta = first.get("delta")
        if isinstance(delta, dict) and (content := _non_empty(delta.get("content"))):
            return content
        if text := _non_empty(first.get("text")):
            return text
    return _non_empty(payload.get("text"))


__all__ = ["ContentExtractor", "extract_content"]
