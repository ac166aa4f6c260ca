"""Error taxonomy components.

Prefer importing from `intelliserver.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError
from .classification import classify_exception, error_message

__all__ = ["ErrorCode", "ProviderError", "classify_exception", "error_message"]
