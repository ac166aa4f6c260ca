"""Error taxonomy public surface.

Re-exports the one-class-per-file implementations under
``intelliserver.base.errors_parts``.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import ProviderError
from .errors_parts.classification import classify_exception, error_message

__all__ = ["ErrorCode", "ProviderError", "classify_exception", "error_message"]
